"""Shared test fixtures for the tradebook."""

from decimal import Decimal

import pytest

from tradebook.config import AppSettings, DashboardSettings, ImportSettings, StoreSettings
from tradebook.models import TradeRecord, TradeSide, TradeStatus

TABULAR_CSV = """Open Time,Pair,Side,Leverage,Entry Price,Exit Price,Quantity,Fee,PnL,Status
01/15/2024 10:00:00,btcusdt,Long,10,100,110,2,1.5,20,Closed
2024-02-03 08:30:00,ETH/USDT,Short,5,3000,0,0.5,0.8,0,Open
2024-02-04 09:00:00,SOLUSDT,SHORT,abc,20,,10
"""

VERTICAL_DUMP = """BTCUSDT
Isolated
Long 10X
Qty
0.5 BTC
Entry Price
42,000.5 USDT
Closing Price
43,000 USDT
Open Time
01/15/2024 10:00:00
Closing Time
01/16/2024 12:30:00
Open Fee
-1.25 USDT
Close Fee
-1.30 USDT
Funding Fee
-0.4 USDT
Trade ID
1,234,567
Copiers
12
P&L
+500 USDT
ETHUSDT
Cross
Short 5X
Qty
2 ETH
Entry Price
2,500 USDT
Open Time
2024-02-01 09:00:00
P&L
-10 USDT
"""


@pytest.fixture
def mock_settings(tmp_path) -> AppSettings:
    """Return AppSettings pointing at a temporary database."""
    return AppSettings(
        log_level="DEBUG",
        store=StoreSettings(db_path=str(tmp_path / "tradebook.db")),
        imports=ImportSettings(),
        dashboard=DashboardSettings(default_user_id="user-1"),
    )


@pytest.fixture
def tabular_csv() -> str:
    return TABULAR_CSV


@pytest.fixture
def vertical_dump() -> str:
    return VERTICAL_DUMP


def _make_trade(**kwargs) -> TradeRecord:
    """Build a TradeRecord with test defaults; any field can be overridden."""
    defaults = dict(
        id="t-1",
        pair="BTC/USDT",
        side=TradeSide.LONG,
        open_time="2024-01-15 10:00:00",
        leverage=Decimal("10"),
        entry_price=Decimal("100"),
        exit_price=Decimal("110"),
        quantity=Decimal("2"),
        status=TradeStatus.CLOSED,
    )
    defaults.update(kwargs)
    return TradeRecord(**defaults)


@pytest.fixture
def make_trade():
    """Factory fixture for TradeRecords (closed BTC/USDT long, 100 -> 110, qty 2, 10x)."""
    return _make_trade
