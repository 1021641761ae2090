"""Shared data models for the copy-trading tradebook.

CRITICAL: All monetary values use Decimal. Never use float for prices, quantities, or fees.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from tradebook.parsing.normalize import get_month_key


class TradeSide(str, Enum):
    """Position direction."""

    LONG = "Long"
    SHORT = "Short"


class MarginType(str, Enum):
    """Margin mode of a leveraged position."""

    ISOLATED = "Isolated"
    CROSS = "Cross"


class TradeStatus(str, Enum):
    """Position lifecycle state."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass
class TradeRecord:
    """One copy-trading position lifecycle event.

    Fees are non-negative magnitudes; they always reduce profit.
    ``exit_price`` stays 0 while the position is open.
    """

    id: str
    pair: str  # BASE/QUOTE, uppercase
    side: TradeSide
    open_time: str
    margin_type: MarginType = MarginType.ISOLATED
    leverage: Decimal = Decimal("10")
    entry_price: Decimal = Decimal("0")
    exit_price: Decimal = Decimal("0")
    quantity: Decimal = Decimal("0")
    open_fee: Decimal = Decimal("0")
    close_fee: Decimal = Decimal("0")
    funding_fee: Decimal = Decimal("0")
    status: TradeStatus = TradeStatus.OPEN
    close_time: str | None = None
    transaction_id: str | None = None
    amount_symbol: str | None = None
    copiers: int = 0
    sharing: int = 0
    user_id: str | None = None

    @property
    def month_key(self) -> str:
        """YYYY-MM grouping key derived from open_time."""
        return get_month_key(self.open_time)


@dataclass
class FundingRecord:
    """One funding-fee cash flow. Negative amount = cost, positive = credit."""

    id: str
    date: str
    asset: str = "USDT"
    amount: Decimal = Decimal("0")
    type: str = "Funding Fee"
    user_id: str | None = None

    @property
    def month_key(self) -> str:
        """YYYY-MM grouping key derived from date."""
        return get_month_key(self.date)


@dataclass(frozen=True)
class TradeMetrics:
    """Derived profitability of a single trade. Never persisted."""

    pnl: Decimal  # gross, before fees
    roe: Decimal  # net profit as % of margin
    margin: Decimal
    net_profit: Decimal


@dataclass
class UserSettings:
    """Per-user dashboard settings."""

    portfolio_size: Decimal = Decimal("10000")
