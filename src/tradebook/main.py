"""Entry point for the tradebook dashboard service.

Wiring order:
1. AppSettings (configuration)
2. Logging setup
3. TradebookDatabase (opened in the FastAPI lifespan)
4. TradebookStore (typed record access)
5. ImportService (CSV import and merge)
6. FastAPI app served by uvicorn
"""

import asyncio
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from tradebook.config import AppSettings
from tradebook.data.database import TradebookDatabase
from tradebook.data.store import TradebookStore
from tradebook.importer import ImportService
from tradebook.logging import get_logger, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database on startup and close it on shutdown.

    Stores `store` and `importer` on app.state for route handlers.
    """
    logger = get_logger("tradebook.main")
    settings: AppSettings = app.state.settings

    database = TradebookDatabase(settings.store.db_path)
    await database.connect()

    store = TradebookStore(database, settings.portfolio.default_portfolio_size)
    app.state.store = store
    app.state.importer = ImportService(store, settings.imports)

    logger.info("lifespan_started", db_path=settings.store.db_path)

    try:
        yield
    finally:
        await database.close()
        logger.info("tradebook_stopped")


async def run() -> None:
    """Load settings, configure logging and serve the dashboard API."""
    settings = AppSettings()

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("tradebook.main")

    if not settings.dashboard.enabled:
        logger.warning("dashboard_disabled", note="Nothing to serve; exiting.")
        return

    from tradebook.dashboard.app import create_dashboard_app

    app = create_dashboard_app(lifespan=lifespan)
    app.state.settings = settings

    logger.info(
        "starting_dashboard",
        host=settings.dashboard.host,
        port=settings.dashboard.port,
    )

    config = uvicorn.Config(
        app,
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Console script entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
