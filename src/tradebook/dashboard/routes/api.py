"""JSON API endpoints: trades with metrics, funding, months, stats, performance."""

from __future__ import annotations

from dataclasses import asdict
from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from tradebook.analytics import stats
from tradebook.logging import bind_user
from tradebook.models import MarginType, TradeRecord, TradeSide, TradeStatus
from tradebook.pnl.metrics import calculate_metrics

log = structlog.get_logger(__name__)

router = APIRouter()


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_decimal_to_str(item) for item in obj]
    return obj


def request_user(request: Request) -> str:
    """User id from the X-User-Id header, else the configured default."""
    user_id = request.headers.get("x-user-id") or request.app.state.settings.dashboard.default_user_id
    bind_user(user_id)
    return user_id


def trade_to_dict(trade: TradeRecord) -> dict[str, Any]:
    """Serialize a trade with its derived month key and metrics."""
    data = asdict(trade)
    data["side"] = TradeSide(trade.side).value
    data["margin_type"] = MarginType(trade.margin_type).value
    data["status"] = TradeStatus(trade.status).value
    data["month_key"] = trade.month_key
    data["metrics"] = asdict(calculate_metrics(trade))
    return _decimal_to_str(data)


def _parse_enum(enum_cls: type, value: str | None, field: str) -> Any:
    if not value or value == "ALL":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid {field}: {value}") from None


@router.get("/trades")
async def get_trades(
    request: Request,
    month: str = "ALL",
    status: str | None = None,
    side: str | None = None,
    sort: str = "date",
    order: str = "desc",
) -> JSONResponse:
    """Trades for the selected month, filtered and sorted, each with metrics."""
    if sort not in ("date", "pnl", "roe"):
        raise HTTPException(status_code=422, detail=f"Invalid sort: {sort}")

    store = request.app.state.store
    trades = await store.fetch_trades(request_user(request), month)
    trades = stats.filter_trades(
        trades,
        status=_parse_enum(TradeStatus, status, "status"),
        side=_parse_enum(TradeSide, side, "side"),
    )
    trades = stats.sort_trades(trades, by=sort, descending=order != "asc")  # type: ignore[arg-type]
    log.debug("trades_listed", month=month, count=len(trades))
    return JSONResponse(content=[trade_to_dict(t) for t in trades])


@router.get("/trades/{trade_id}/share")
async def get_share_message(request: Request, trade_id: str) -> JSONResponse:
    """Shareable plain-text summary of one trade."""
    store = request.app.state.store
    trades = await store.fetch_trades(request_user(request))
    for trade in trades:
        if trade.id == trade_id:
            return JSONResponse(content={"text": stats.format_share_message(trade)})
    raise HTTPException(status_code=404, detail="Trade not found")


@router.get("/funding")
async def get_funding(request: Request, month: str = "ALL") -> JSONResponse:
    """Funding records for the selected month."""
    store = request.app.state.store
    records = await store.fetch_funding_records(request_user(request))
    _, records = stats.filter_by_month([], records, month)

    result = []
    for record in records:
        data = asdict(record)
        data["month_key"] = record.month_key
        result.append(_decimal_to_str(data))
    return JSONResponse(content=result)


@router.get("/months")
async def get_months(request: Request) -> JSONResponse:
    """Month keys that have at least one trade or funding record, newest first."""
    store = request.app.state.store
    user_id = request_user(request)
    trades = await store.fetch_trades(user_id)
    funding = await store.fetch_funding_records(user_id)
    return JSONResponse(content=stats.available_months(trades, funding))


@router.get("/stats")
async def get_stats(request: Request, month: str = "ALL") -> JSONResponse:
    """Headline dashboard stats for the selected month."""
    store = request.app.state.store
    user_id = request_user(request)
    trades, funding = stats.filter_by_month(
        await store.fetch_trades(user_id),
        await store.fetch_funding_records(user_id),
        month,
    )
    settings = await store.fetch_settings(user_id)

    result = stats.compute_dashboard_stats(trades, funding, settings.portfolio_size)
    data = asdict(result)
    data["portfolio_size"] = settings.portfolio_size
    return JSONResponse(content=_decimal_to_str(data))


@router.get("/performance")
async def get_performance(request: Request, month: str = "ALL") -> JSONResponse:
    """Cumulative net profit curve of closed trades."""
    store = request.app.state.store
    trades = await store.fetch_trades(request_user(request), month)
    points = stats.cumulative_pnl_series(trades)
    return JSONResponse(content=[_decimal_to_str(asdict(p)) for p in points])
