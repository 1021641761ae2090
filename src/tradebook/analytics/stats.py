"""Dashboard aggregates over trade and funding records.

Pure Decimal analytics: month partitioning, filtering, sorting, headline stats,
cumulative P&L series. Metrics are recomputed from records on every call and
never cached.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Literal

from tradebook.models import FundingRecord, TradeRecord, TradeSide, TradeStatus
from tradebook.pnl.metrics import calculate_metrics

ALL_MONTHS = "ALL"
FALLBACK_PORTFOLIO_SIZE = Decimal("10000")

SortField = Literal["date", "pnl", "roe"]


@dataclass(frozen=True)
class DashboardStats:
    """Headline numbers for one month (or all time)."""

    total_pnl: Decimal  # trade net profit + funding adjustment
    trade_pnl: Decimal
    funding_adjustment: Decimal
    win_rate: Decimal  # percent of closed trades with positive net profit
    active_count: int
    total_count: int
    global_return_percent: Decimal  # total_pnl relative to portfolio size


@dataclass(frozen=True)
class PerformancePoint:
    """One point of the cumulative P&L curve."""

    date: str
    pnl: Decimal


def available_months(
    trades: list[TradeRecord],
    funding: list[FundingRecord],
) -> list[str]:
    """Distinct month keys across both record types, newest first."""
    months = {t.month_key for t in trades} | {f.month_key for f in funding}
    return sorted(months, reverse=True)


def filter_by_month(
    trades: list[TradeRecord],
    funding: list[FundingRecord],
    month: str = ALL_MONTHS,
) -> tuple[list[TradeRecord], list[FundingRecord]]:
    """Restrict both record lists to one YYYY-MM month. "ALL" keeps everything."""
    if not month or month == ALL_MONTHS:
        return list(trades), list(funding)
    return (
        [t for t in trades if t.month_key == month],
        [f for f in funding if f.month_key == month],
    )


def filter_trades(
    trades: list[TradeRecord],
    status: TradeStatus | None = None,
    side: TradeSide | None = None,
) -> list[TradeRecord]:
    """Filter trades by status and/or side. None means no filter."""
    result = list(trades)
    if status is not None:
        result = [t for t in result if t.status == status]
    if side is not None:
        result = [t for t in result if t.side == side]
    return result


def _timestamp(value: str | None) -> float:
    """Epoch seconds for an ISO-ish timestamp; 0.0 if it cannot be parsed."""
    if not value:
        return 0.0
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def sort_trades(
    trades: list[TradeRecord],
    by: SortField = "date",
    descending: bool = True,
) -> list[TradeRecord]:
    """Sort by open time, net profit or ROE. Returns a new list."""
    if by == "pnl":
        def key(t: TradeRecord) -> Decimal | float:
            return calculate_metrics(t).net_profit
    elif by == "roe":
        def key(t: TradeRecord) -> Decimal | float:
            return calculate_metrics(t).roe
    else:
        def key(t: TradeRecord) -> Decimal | float:
            return _timestamp(t.open_time)

    return sorted(trades, key=key, reverse=descending)


def _round(value: Decimal, exp: Decimal) -> Decimal:
    """Round half up to exp; values too wide for the context are returned as is."""
    try:
        return value.quantize(exp, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return value


def compute_dashboard_stats(
    trades: list[TradeRecord],
    funding: list[FundingRecord],
    portfolio_size: Decimal,
) -> DashboardStats:
    """Aggregate headline stats for the given records.

    Open positions contribute their (fee-only) net profit to trade P&L but
    only closed positions count toward the win rate.

    Args:
        trades: Trades in the selected period.
        funding: Funding records in the selected period.
        portfolio_size: Capital base for the global return; values <= 0 fall
            back to 10000.

    Returns:
        DashboardStats with money rounded to 2 places and win rate to 1.
    """
    trade_pnl = Decimal("0")
    wins = 0
    closed_count = 0
    active_count = 0

    for trade in trades:
        net_profit = calculate_metrics(trade).net_profit
        trade_pnl += net_profit
        if trade.status == TradeStatus.CLOSED:
            closed_count += 1
            if net_profit > 0:
                wins += 1
        else:
            active_count += 1

    funding_adjustment = sum((f.amount for f in funding), Decimal("0"))
    total_pnl = trade_pnl + funding_adjustment

    if closed_count > 0:
        win_rate = Decimal(wins) / Decimal(closed_count) * Decimal("100")
    else:
        win_rate = Decimal("0")

    base = portfolio_size if portfolio_size > 0 else FALLBACK_PORTFOLIO_SIZE
    global_return = total_pnl / base * Decimal("100")

    cents = Decimal("0.01")
    return DashboardStats(
        total_pnl=_round(total_pnl, cents),
        trade_pnl=_round(trade_pnl, cents),
        funding_adjustment=_round(funding_adjustment, cents),
        win_rate=_round(win_rate, Decimal("0.1")),
        active_count=active_count,
        total_count=len(trades),
        global_return_percent=_round(global_return, cents),
    )


def cumulative_pnl_series(trades: list[TradeRecord]) -> list[PerformancePoint]:
    """Running net profit of closed trades in close-time order.

    Trades without a close time are placed at their open time.
    """
    closed = [t for t in trades if t.status == TradeStatus.CLOSED]
    closed.sort(key=lambda t: _timestamp(t.close_time or t.open_time))

    cumulative = Decimal("0")
    points: list[PerformancePoint] = []
    for trade in closed:
        cumulative += calculate_metrics(trade).net_profit
        points.append(
            PerformancePoint(
                date=(trade.close_time or trade.open_time)[:10],
                pnl=cumulative,
            )
        )
    return points


def format_share_message(trade: TradeRecord) -> str:
    """Plain-text summary of a trade for pasting into a chat or channel."""
    metrics = calculate_metrics(trade)
    side = TradeSide(trade.side).value.upper()
    exit_text = str(trade.exit_price) if trade.exit_price else "Active"
    return (
        f"Trade Signal\n\n"
        f"{trade.pair} ({side})\n"
        f"Leverage: {trade.leverage}x\n"
        f"Entry: {trade.entry_price}\n"
        f"Exit: {exit_text}\n\n"
        f"PnL: {metrics.pnl:.2f} USDT\n"
        f"ROE: {metrics.roe:.2f}%"
    )
