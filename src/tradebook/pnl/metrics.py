"""Per-trade profitability metrics: gross P&L, margin, net profit and ROE.

All calculations use Decimal arithmetic. calculate_metrics is total: missing or
malformed fields fall back to defaults and undefined ratios come out as 0.

Without a live price feed an open position is marked at its entry price,
so its gross P&L is 0 and its net profit is minus the fees paid so far.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from tradebook.logging import get_logger
from tradebook.models import TradeMetrics, TradeRecord, TradeSide
from tradebook.parsing.normalize import in_exponent_range

logger = get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Only applies to trades whose leverage is missing or unparsable at
# calculation time. Import assigns 10 instead.
FALLBACK_LEVERAGE = Decimal("1")

ZERO_METRICS = TradeMetrics(pnl=ZERO, roe=ZERO, margin=ZERO, net_profit=ZERO)


def _to_decimal(value: Any) -> Decimal | None:
    """Coerce a stored field to a finite in-range Decimal, or None if it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        return None
    if not result.is_finite() or not in_exponent_range(result):
        return None
    return result


def _amount(value: Any) -> Decimal:
    return _to_decimal(value) or ZERO


def calculate_metrics(trade: TradeRecord) -> TradeMetrics:
    """Compute P&L metrics for one trade. Never raises, never mutates the trade.

    - current price = exit price when non-zero, else entry price
    - gross P&L = (current - entry) * qty for longs, (entry - current) * qty for shorts
    - margin = entry * qty / leverage, 0 when leverage <= 0
    - net profit = gross P&L - (open fee + close fee + funding fee)
    - ROE = net profit / margin * 100, 0 when margin <= 0

    Values whose products leave the decimal range yield all-zero metrics.

    Args:
        trade: Record to evaluate.

    Returns:
        TradeMetrics with Decimal fields.
    """
    quantity = _amount(trade.quantity)
    entry_price = _amount(trade.entry_price)
    current_price = _amount(trade.exit_price) or entry_price

    leverage = _to_decimal(trade.leverage)
    if leverage is None:
        leverage = FALLBACK_LEVERAGE

    try:
        total_fees = _amount(trade.open_fee) + _amount(trade.close_fee) + _amount(trade.funding_fee)
        if trade.side == TradeSide.LONG:
            gross_pnl = (current_price - entry_price) * quantity
        else:
            gross_pnl = (entry_price - current_price) * quantity

        margin = (entry_price * quantity) / leverage if leverage > ZERO else ZERO
        net_profit = gross_pnl - total_fees
        roe = (net_profit / margin) * HUNDRED if margin > ZERO else ZERO
    except ArithmeticError:
        logger.warning("metrics_out_of_range", trade_id=trade.id, pair=trade.pair)
        return ZERO_METRICS

    return TradeMetrics(
        pnl=gross_pnl,
        roe=roe,
        margin=margin,
        net_profit=net_profit,
    )
