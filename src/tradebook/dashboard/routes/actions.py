"""Write endpoints: CSV imports, manual trade entry, settings, bulk delete."""

from __future__ import annotations

from decimal import Decimal

import structlog
from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tradebook.dashboard.routes.api import request_user, trade_to_dict
from tradebook.data.store import stable_id
from tradebook.exceptions import FileTooLargeError, UnsupportedFormatError
from tradebook.models import MarginType, TradeRecord, TradeSide, TradeStatus, UserSettings
from tradebook.parsing.normalize import format_time, normalize_pair

log = structlog.get_logger(__name__)

router = APIRouter()


class TradeIn(BaseModel):
    """Manually entered trade. Omit id (or send a placeholder) to create."""

    id: str | None = None  # UUID to update; anything else creates a new trade
    pair: str = "BTC/USDT"
    side: TradeSide = TradeSide.LONG
    margin_type: MarginType = MarginType.ISOLATED
    leverage: Decimal = Field(default=Decimal("10"), gt=0)
    entry_price: Decimal = Decimal("0")
    exit_price: Decimal = Decimal("0")
    quantity: Decimal = Decimal("0")
    open_fee: Decimal = Field(default=Decimal("0"), ge=0)
    close_fee: Decimal = Field(default=Decimal("0"), ge=0)
    funding_fee: Decimal = Field(default=Decimal("0"), ge=0)
    status: TradeStatus = TradeStatus.OPEN
    open_time: str = ""
    close_time: str | None = None
    transaction_id: str | None = None
    amount_symbol: str | None = None
    copiers: int = 0
    sharing: int = 0


class SettingsIn(BaseModel):
    portfolio_size: Decimal = Field(gt=0)


async def _run_import(request: Request, kind: str, file: UploadFile) -> JSONResponse:
    importer = request.app.state.importer
    user_id = request_user(request)
    data = await file.read()
    filename = file.filename or ""

    try:
        if kind == "trades":
            result = await importer.import_trades(user_id, filename, data)
        else:
            result = await importer.import_funding(user_id, filename, data)
    except UnsupportedFormatError as e:
        log.warning("import_rejected", kind=kind, filename=filename, error=str(e))
        raise HTTPException(status_code=415, detail=str(e)) from e
    except FileTooLargeError as e:
        log.warning("import_rejected", kind=kind, filename=filename, error=str(e))
        raise HTTPException(status_code=413, detail=str(e)) from e

    return JSONResponse(content={"imported": result.imported, "message": result.message})


@router.post("/import/trades")
async def import_trades(request: Request, file: UploadFile = File(...)) -> JSONResponse:
    """Import a trade history export (tabular CSV or vertical dump)."""
    return await _run_import(request, "trades", file)


@router.post("/import/funding")
async def import_funding(request: Request, file: UploadFile = File(...)) -> JSONResponse:
    """Import a funding fee export."""
    return await _run_import(request, "funding", file)


@router.post("/trades")
async def save_trade(request: Request, payload: TradeIn) -> JSONResponse:
    """Create or update one manually entered trade."""
    store = request.app.state.store
    user_id = request_user(request)

    pair = normalize_pair(payload.pair)
    if "/" not in pair:
        raise HTTPException(status_code=422, detail=f"Invalid pair: {payload.pair}")

    trade = TradeRecord(
        id=stable_id(payload.id),
        pair=pair,
        side=payload.side,
        open_time=format_time(payload.open_time),
        margin_type=payload.margin_type,
        leverage=payload.leverage,
        entry_price=payload.entry_price,
        exit_price=payload.exit_price,
        quantity=payload.quantity,
        open_fee=payload.open_fee,
        close_fee=payload.close_fee,
        funding_fee=payload.funding_fee,
        status=payload.status,
        close_time=payload.close_time,
        transaction_id=payload.transaction_id,
        amount_symbol=payload.amount_symbol or pair.split("/")[0],
        copiers=payload.copiers,
        sharing=payload.sharing,
    )
    await store.sync_trades([trade], user_id)
    log.info("trade_saved", pair=trade.pair, status=trade.status.value)
    return JSONResponse(content=trade_to_dict(trade))


@router.post("/settings")
async def update_settings(request: Request, payload: SettingsIn) -> JSONResponse:
    """Update the portfolio size used for the global return figure."""
    store = request.app.state.store
    await store.update_settings(UserSettings(portfolio_size=payload.portfolio_size), request_user(request))
    return JSONResponse(content={"portfolio_size": str(payload.portfolio_size)})


@router.delete("/trades")
async def delete_trades(request: Request) -> JSONResponse:
    """Delete every trade of the current user."""
    store = request.app.state.store
    deleted = await store.delete_all_trades(request_user(request))
    return JSONResponse(content={"deleted": deleted})
