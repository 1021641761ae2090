"""Tests for per-trade P&L metrics.

All test values use Decimal (project convention).
"""

from decimal import Decimal

from tradebook.models import TradeSide, TradeStatus
from tradebook.parsing.trades import parse_trades
from tradebook.pnl.metrics import calculate_metrics


class TestCalculateMetrics:
    """Gross P&L, margin, net profit and ROE for single trades."""

    def test_closed_long(self, make_trade) -> None:
        """LONG 100 -> 110, qty 2, 10x: margin 20, pnl 20, ROE 100%."""
        m = calculate_metrics(make_trade())
        assert m.margin == Decimal("20")
        assert m.pnl == Decimal("20")
        assert m.net_profit == Decimal("20")
        assert m.roe == Decimal("100")

    def test_closed_short_with_fees(self, make_trade) -> None:
        """SHORT 100 -> 90, qty 1, 5x, fees 1 + 1: net 8 on margin 20."""
        trade = make_trade(
            side=TradeSide.SHORT,
            exit_price=Decimal("90"),
            quantity=Decimal("1"),
            leverage=Decimal("5"),
            open_fee=Decimal("1"),
            close_fee=Decimal("1"),
        )
        m = calculate_metrics(trade)
        assert m.margin == Decimal("20")
        assert m.pnl == Decimal("10")
        assert m.net_profit == Decimal("8")
        assert m.roe == Decimal("40")

    def test_losing_long(self, make_trade) -> None:
        m = calculate_metrics(make_trade(exit_price=Decimal("95")))
        assert m.pnl == Decimal("-10")
        assert m.roe == Decimal("-50")

    def test_funding_fee_reduces_net_profit(self, make_trade) -> None:
        m = calculate_metrics(make_trade(funding_fee=Decimal("0.5")))
        assert m.pnl == Decimal("20")
        assert m.net_profit == Decimal("19.5")

    def test_open_trade_marked_at_entry(self, make_trade) -> None:
        """Without an exit price the position is valued at entry: only fees count."""
        trade = make_trade(
            exit_price=Decimal("0"),
            status=TradeStatus.OPEN,
            open_fee=Decimal("0.3"),
        )
        m = calculate_metrics(trade)
        assert m.pnl == Decimal("0")
        assert m.net_profit == Decimal("-0.3")
        assert m.roe == Decimal("-1.5")

    def test_zero_leverage_gives_zero_margin_and_roe(self, make_trade) -> None:
        m = calculate_metrics(make_trade(leverage=Decimal("0")))
        assert m.margin == Decimal("0")
        assert m.roe == Decimal("0")
        assert m.pnl == Decimal("20")

    def test_missing_leverage_treated_as_one(self, make_trade) -> None:
        m = calculate_metrics(make_trade(leverage=None))
        assert m.margin == Decimal("200")
        assert m.roe == Decimal("10")

    def test_unparsable_leverage_treated_as_one(self, make_trade) -> None:
        m = calculate_metrics(make_trade(leverage="abc"))
        assert m.margin == Decimal("200")

    def test_zero_quantity(self, make_trade) -> None:
        m = calculate_metrics(make_trade(quantity=Decimal("0")))
        assert m.margin == Decimal("0")
        assert m.pnl == Decimal("0")
        assert m.roe == Decimal("0")

    def test_malformed_prices_default_to_zero(self, make_trade) -> None:
        m = calculate_metrics(make_trade(entry_price=None, exit_price="n/a"))
        assert m.pnl == Decimal("0")
        assert m.roe == Decimal("0")

    def test_does_not_mutate_trade(self, make_trade) -> None:
        trade = make_trade()
        calculate_metrics(trade)
        assert trade.exit_price == Decimal("110")
        assert trade.leverage == Decimal("10")

    def test_string_fields_accepted(self, make_trade) -> None:
        trade = make_trade(entry_price="100", exit_price="110", quantity="2", leverage="10")
        assert calculate_metrics(trade).roe == Decimal("100")


class TestExtremeValues:
    """Magnitudes at the edge of the decimal range must not raise."""

    def test_overflowing_margin_gives_zero_metrics(self, make_trade) -> None:
        trade = make_trade(
            entry_price=Decimal("1e999999"),
            quantity=Decimal("1e999999"),
            leverage=Decimal("1e-999999"),
            exit_price=Decimal("0"),
        )
        m = calculate_metrics(trade)
        assert m.pnl == Decimal("0")
        assert m.margin == Decimal("0")
        assert m.net_profit == Decimal("0")
        assert m.roe == Decimal("0")

    def test_tiny_leverage_overflows_to_zero(self, make_trade) -> None:
        m = calculate_metrics(make_trade(leverage=Decimal("1e-999999")))
        assert m.margin == Decimal("0")
        assert m.roe == Decimal("0")

    def test_out_of_range_leverage_treated_as_missing(self, make_trade) -> None:
        m = calculate_metrics(make_trade(leverage="1e1000000"))
        assert m.margin == Decimal("200")

    def test_imported_extreme_row(self) -> None:
        [trade] = parse_trades("h\n2024-01-01,BTCUSDT,Long,1e-999999,1e999999,0,1e999999,0\n")
        assert calculate_metrics(trade).net_profit == Decimal("0")
