"""FastAPI application factory for the tradebook dashboard API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from tradebook.dashboard.routes import actions, api


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Build the JSON API app.

    Route handlers read `settings`, `store` and `importer` from app.state.
    main.py's lifespan sets `store` and `importer`; whoever creates the app
    sets `settings` before it starts.

    Args:
        lifespan: Optional async context manager for startup/shutdown.
    """
    app = FastAPI(title="Copy Trading Tradebook", lifespan=lifespan)

    app.include_router(api.router, prefix="/api")
    app.include_router(actions.router, prefix="/actions")
    return app
