"""Tests for dashboard analytics: month filters, sorting, stats, P&L series."""

from decimal import Decimal

from tradebook.analytics.stats import (
    available_months,
    compute_dashboard_stats,
    cumulative_pnl_series,
    filter_by_month,
    filter_trades,
    format_share_message,
    sort_trades,
)
from tradebook.models import FundingRecord, TradeSide, TradeStatus


def _funding(date: str, amount: str, record_id: str = "f-1") -> FundingRecord:
    return FundingRecord(id=record_id, date=date, amount=Decimal(amount))


class TestMonths:
    def test_available_months_newest_first(self, make_trade) -> None:
        trades = [
            make_trade(open_time="2024-01-15 10:00:00"),
            make_trade(open_time="2024-03-02 10:00:00"),
        ]
        funding = [_funding("2024-02-01 08:00:00", "1")]
        assert available_months(trades, funding) == ["2024-03", "2024-02", "2024-01"]

    def test_duplicates_collapsed(self, make_trade) -> None:
        trades = [make_trade(), make_trade(id="t-2")]
        assert available_months(trades, []) == ["2024-01"]

    def test_filter_by_month(self, make_trade) -> None:
        jan = make_trade()
        feb = make_trade(id="t-2", open_time="2024-02-10 10:00:00")
        funding = [_funding("2024-02-01 08:00:00", "1")]

        trades, records = filter_by_month([jan, feb], funding, "2024-02")
        assert trades == [feb]
        assert records == funding

        trades, records = filter_by_month([jan, feb], funding, "ALL")
        assert len(trades) == 2
        assert len(records) == 1


class TestFilterAndSort:
    def test_filter_by_status_and_side(self, make_trade) -> None:
        closed_long = make_trade()
        open_short = make_trade(id="t-2", side=TradeSide.SHORT, status=TradeStatus.OPEN)

        assert filter_trades([closed_long, open_short], status=TradeStatus.OPEN) == [open_short]
        assert filter_trades([closed_long, open_short], side=TradeSide.LONG) == [closed_long]
        assert len(filter_trades([closed_long, open_short])) == 2

    def test_sort_by_date(self, make_trade) -> None:
        old = make_trade(id="old", open_time="2024-01-01 00:00:00")
        new = make_trade(id="new", open_time="2024-02-01 00:00:00")
        assert [t.id for t in sort_trades([old, new])] == ["new", "old"]
        assert [t.id for t in sort_trades([new, old], descending=False)] == ["old", "new"]

    def test_unparsable_dates_sort_last(self, make_trade) -> None:
        bad = make_trade(id="bad", open_time="sometime")
        good = make_trade(id="good")
        assert [t.id for t in sort_trades([bad, good])] == ["good", "bad"]

    def test_sort_by_pnl(self, make_trade) -> None:
        small = make_trade(id="small", exit_price=Decimal("101"))
        big = make_trade(id="big", exit_price=Decimal("150"))
        assert [t.id for t in sort_trades([small, big], by="pnl")] == ["big", "small"]

    def test_sort_by_roe(self, make_trade) -> None:
        low_lev = make_trade(id="low", leverage=Decimal("1"))
        high_lev = make_trade(id="high", leverage=Decimal("20"))
        assert [t.id for t in sort_trades([low_lev, high_lev], by="roe")] == ["high", "low"]


class TestDashboardStats:
    def test_totals_include_funding(self, make_trade) -> None:
        trades = [
            make_trade(),  # +20
            make_trade(id="t-2", exit_price=Decimal("95")),  # -10
            make_trade(id="t-3", status=TradeStatus.OPEN, exit_price=Decimal("0")),
        ]
        funding = [_funding("2024-01-20 08:00:00", "-2.5")]

        stats = compute_dashboard_stats(trades, funding, Decimal("1000"))
        assert stats.trade_pnl == Decimal("10.00")
        assert stats.funding_adjustment == Decimal("-2.50")
        assert stats.total_pnl == Decimal("7.50")
        assert stats.win_rate == Decimal("50.0")
        assert stats.active_count == 1
        assert stats.total_count == 3
        assert stats.global_return_percent == Decimal("0.75")

    def test_no_closed_trades_gives_zero_win_rate(self, make_trade) -> None:
        trades = [make_trade(status=TradeStatus.OPEN, exit_price=Decimal("0"))]
        stats = compute_dashboard_stats(trades, [], Decimal("10000"))
        assert stats.win_rate == Decimal("0.0")

    def test_empty_input(self) -> None:
        stats = compute_dashboard_stats([], [], Decimal("10000"))
        assert stats.total_pnl == Decimal("0.00")
        assert stats.total_count == 0

    def test_non_positive_portfolio_falls_back(self, make_trade) -> None:
        stats = compute_dashboard_stats([make_trade()], [], Decimal("0"))
        assert stats.global_return_percent == Decimal("0.20")

    def test_win_rate_rounded_half_up(self, make_trade) -> None:
        trades = [
            make_trade(id="a"),
            make_trade(id="b", exit_price=Decimal("90")),
            make_trade(id="c", exit_price=Decimal("90")),
        ]
        assert compute_dashboard_stats(trades, [], Decimal("10000")).win_rate == Decimal("33.3")

    def test_values_too_wide_to_round_are_kept(self, make_trade) -> None:
        trade = make_trade(
            entry_price=Decimal("1e30"),
            exit_price=Decimal("2e30"),
            quantity=Decimal("1"),
            leverage=Decimal("1"),
        )
        stats = compute_dashboard_stats([trade], [], Decimal("10000"))
        assert stats.trade_pnl == Decimal("1e30")
        assert stats.global_return_percent == Decimal("1e28")
        assert stats.win_rate == Decimal("100.0")


class TestCumulativeSeries:
    def test_closed_trades_in_close_order(self, make_trade) -> None:
        first = make_trade(id="a", close_time="2024-01-16 10:00:00")
        second = make_trade(
            id="b", exit_price=Decimal("95"), close_time="2024-01-18 10:00:00"
        )
        open_trade = make_trade(id="c", status=TradeStatus.OPEN)

        points = cumulative_pnl_series([second, open_trade, first])
        assert [p.date for p in points] == ["2024-01-16", "2024-01-18"]
        assert [p.pnl for p in points] == [Decimal("20"), Decimal("10")]

    def test_falls_back_to_open_time(self, make_trade) -> None:
        points = cumulative_pnl_series([make_trade()])
        assert points[0].date == "2024-01-15"

    def test_empty(self) -> None:
        assert cumulative_pnl_series([]) == []


class TestShareMessage:
    def test_closed_trade(self, make_trade) -> None:
        text = format_share_message(make_trade())
        assert text.startswith("Trade Signal\n\nBTC/USDT (LONG)\n")
        assert "Leverage: 10x" in text
        assert "Exit: 110" in text
        assert text.endswith("PnL: 20.00 USDT\nROE: 100.00%")

    def test_open_trade_shows_active(self, make_trade) -> None:
        trade = make_trade(side=TradeSide.SHORT, exit_price=Decimal("0"), status=TradeStatus.OPEN)
        text = format_share_message(trade)
        assert "(SHORT)" in text
        assert "Exit: Active" in text
