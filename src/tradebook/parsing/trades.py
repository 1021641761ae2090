"""Trade history CSV parsing.

Two export dialects are accepted:

- tabular CSV: one row per trade, fixed column positions (see COL_* below)
- vertical dump: label/value line pairs per trade (see tradebook.parsing.vertical)

The tabular layout is positional. There is no header-name lookup, so an
export with reordered columns parses into wrong values rather than failing.
"""

import re
import time
from decimal import Decimal

from tradebook.logging import get_logger
from tradebook.models import MarginType, TradeRecord, TradeSide, TradeStatus
from tradebook.parsing.normalize import format_time, normalize_pair, parse_decimal
from tradebook.parsing.vertical import DEFAULT_LEVERAGE, PAIR_LOOKBACK, parse_vertical_dump

logger = get_logger(__name__)

_LINE_SPLIT_RE = re.compile(r"\r?\n")

COL_OPEN_TIME = 0
COL_PAIR = 1
COL_SIDE = 2
COL_LEVERAGE = 3
COL_ENTRY_PRICE = 4
COL_EXIT_PRICE = 5
COL_QUANTITY = 6
COL_FEE = 7  # open + close fee combined
COL_STATUS = 9

MIN_COLUMNS = 5
MIN_PAIR_LENGTH = 3


def split_lines(csv_text: str) -> list[str]:
    """Split export text into trimmed lines, dropping blanks and lone commas."""
    lines = (line.strip() for line in _LINE_SPLIT_RE.split(csv_text))
    return [line for line in lines if line and line != ","]


def is_vertical_dump(lines: list[str]) -> bool:
    """A dump carries both a "Qty" and an "Entry Price" label somewhere."""
    has_qty = any("Qty" in line for line in lines)
    has_entry = any("Entry Price" in line for line in lines)
    return has_qty and has_entry


def _column(cols: list[str], index: int) -> str:
    return cols[index] if index < len(cols) else ""


def _number(cols: list[str], index: int) -> Decimal:
    return parse_decimal(_column(cols, index)) or Decimal("0")


def _parse_row(cols: list[str], row_index: int, batch_ms: int) -> TradeRecord | None:
    """Map one tabular row to a TradeRecord, or None when the pair is unusable."""
    pair = normalize_pair(_column(cols, COL_PAIR))
    if len(pair) < MIN_PAIR_LENGTH or "/" not in pair:
        return None

    side_text = _column(cols, COL_SIDE).lower()
    side = TradeSide.SHORT if "short" in side_text else TradeSide.LONG

    exit_price = _number(cols, COL_EXIT_PRICE)
    half_fee = abs(_number(cols, COL_FEE)) / 2
    closed = exit_price > 0 or _column(cols, COL_STATUS).lower() == "closed"

    return TradeRecord(
        id=f"CSV-{batch_ms}-{row_index}",
        transaction_id="",
        open_time=format_time(_column(cols, COL_OPEN_TIME)),
        pair=pair,
        side=side,
        margin_type=MarginType.ISOLATED,
        leverage=parse_decimal(_column(cols, COL_LEVERAGE)) or DEFAULT_LEVERAGE,
        entry_price=_number(cols, COL_ENTRY_PRICE),
        exit_price=exit_price,
        quantity=_number(cols, COL_QUANTITY),
        amount_symbol=pair.split("/")[0] or "USDT",
        open_fee=half_fee,
        close_fee=half_fee,
        funding_fee=Decimal("0"),
        status=TradeStatus.CLOSED if closed else TradeStatus.OPEN,
    )


def _parse_tabular(lines: list[str]) -> list[TradeRecord]:
    """Parse header + one-row-per-trade CSV. Short or pairless rows are skipped."""
    batch_ms = int(time.time() * 1000)
    trades: list[TradeRecord] = []
    for row_index, line in enumerate(lines[1:], start=1):
        cols = line.split(",")
        if len(cols) < MIN_COLUMNS:
            continue
        record = _parse_row(cols, row_index, batch_ms)
        if record is not None:
            trades.append(record)
    return trades


def parse_trades(csv_text: str, pair_lookback: int = PAIR_LOOKBACK) -> list[TradeRecord]:
    """Parse a trade history export in either supported dialect.

    Best-effort: rows that cannot be minimally validated are skipped and the
    result may be empty. Never raises on malformed content.

    Args:
        csv_text: Decoded file content.
        pair_lookback: Pair anchor search window for vertical dumps.

    Returns:
        Parsed trades in file order.
    """
    if not csv_text:
        return []

    lines = split_lines(csv_text)
    if is_vertical_dump(lines):
        dialect = "vertical"
        trades = parse_vertical_dump(lines, pair_lookback)
    else:
        dialect = "tabular"
        trades = _parse_tabular(lines)

    logger.debug(
        "trades_parsed",
        dialect=dialect,
        lines=len(lines),
        records=len(trades),
    )
    return trades
