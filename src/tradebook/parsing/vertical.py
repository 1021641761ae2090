"""Parser for "vertical dump" trade exports.

A vertical dump is what you get when a copy-trading position list is copied
out of the exchange UI: every field is a label line followed by a value line,
one block per trade, each block closed by a "P&L" line::

    BTCUSDT
    Isolated
    Long 10X
    Qty
    0.5 BTC
    Entry Price
    42,000.5 USDT
    ...
    P&L
    +12.34 USDT

The pair, margin type and side/leverage lines have no labels. They are found
by scanning a few lines back from the "Qty" label for something that looks
like a pair. Blocks without a recognizable pair are dropped.
"""

import time
from dataclasses import dataclass
from decimal import Decimal

from tradebook.models import MarginType, TradeRecord, TradeSide, TradeStatus
from tradebook.parsing.normalize import (
    clean_num,
    clean_val,
    format_time,
    normalize_pair,
    parse_decimal,
    parse_int,
)

PAIR_LOOKBACK = 4
RESERVED_ANCHOR_WORDS = frozenset({"ISOLATED", "CROSS", "LONG", "SHORT", "DETAILS"})

QTY_LABEL = "Qty"
RECORD_TERMINATOR = "P&L"
DEFAULT_LEVERAGE = Decimal("10")

_EXIT_PRICE_LABELS = ("Closing Price", "Exit Price")
_TRANSACTION_ID_LABELS = ("Trade ID", "Transaction ID")
_CLOSE_TIME_LABELS = ("Closing Time", "Close Time")


@dataclass
class TradeDraft:
    """Partially parsed trade accumulated while scanning one block.

    Every field is optional until finalize() fills in defaults.
    """

    pair: str | None = None
    side: TradeSide | None = None
    margin_type: MarginType | None = None
    leverage: Decimal | None = None
    quantity: Decimal | None = None
    amount_symbol: str | None = None
    entry_price: Decimal | None = None
    exit_price: Decimal | None = None
    status: TradeStatus | None = None
    transaction_id: str | None = None
    open_time: str | None = None
    close_time: str | None = None
    open_fee: Decimal | None = None
    close_fee: Decimal | None = None
    funding_fee: Decimal | None = None
    copiers: int | None = None

    def finalize(self, record_id: str) -> TradeRecord:
        """Build a TradeRecord, filling unset fields with import defaults.

        Defaults: status OPEN, fees 0, leverage 10, margin ISOLATED, side LONG.
        """
        return TradeRecord(
            id=record_id,
            pair=self.pair or "",
            side=self.side or TradeSide.LONG,
            open_time=self.open_time or "",
            margin_type=self.margin_type or MarginType.ISOLATED,
            leverage=self.leverage or DEFAULT_LEVERAGE,
            entry_price=self.entry_price or Decimal("0"),
            exit_price=self.exit_price or Decimal("0"),
            quantity=self.quantity or Decimal("0"),
            open_fee=self.open_fee or Decimal("0"),
            close_fee=self.close_fee or Decimal("0"),
            funding_fee=self.funding_fee or Decimal("0"),
            status=self.status or TradeStatus.OPEN,
            close_time=self.close_time,
            transaction_id=self.transaction_id,
            amount_symbol=self.amount_symbol,
            copiers=self.copiers or 0,
        )


def find_pair_anchor(
    lines: list[str],
    qty_index: int,
    lookback: int = PAIR_LOOKBACK,
) -> int | None:
    """Return the index of the pair line above a "Qty" label, nearest first.

    A candidate qualifies when it normalizes to a token containing "/" (or
    ends in USDT before normalization) and is not a reserved word such as
    ISOLATED or LONG. Only the `lookback` lines directly above are examined.
    """
    for offset in range(1, lookback + 1):
        index = qty_index - offset
        if index < 0:
            break
        candidate = lines[index].replace(",", "").strip()
        normalized = normalize_pair(candidate)
        looks_like_pair = "/" in normalized or candidate.endswith("USDT")
        if looks_like_pair and normalized not in RESERVED_ANCHOR_WORDS:
            return index
    return None


def _apply_anchor(draft: TradeDraft, lines: list[str], anchor: int) -> None:
    """Read pair, margin type and side/leverage from the unlabeled header lines."""
    draft.pair = normalize_pair(lines[anchor].replace(",", "").strip())

    if anchor + 1 < len(lines):
        margin_text = lines[anchor + 1].strip()
        draft.margin_type = MarginType.CROSS if "Cross" in margin_text else MarginType.ISOLATED

    if anchor + 2 < len(lines):
        parts = lines[anchor + 2].strip().split(" ")
        draft.side = TradeSide.SHORT if parts[0].lower() == "short" else TradeSide.LONG
        if len(parts) > 1 and parts[1]:
            leverage = parse_decimal(parts[1].upper().replace("X", "", 1))
            draft.leverage = leverage or DEFAULT_LEVERAGE


def _apply_quantity(draft: TradeDraft, value: str) -> None:
    """Parse "0.5 BTC" into quantity and amount symbol."""
    parts = value.replace(",", "").strip().split(" ")
    draft.quantity = parse_decimal(parts[0]) or Decimal("0")
    if len(parts) > 1:
        draft.amount_symbol = parts[1]
    elif draft.pair:
        draft.amount_symbol = draft.pair.split("/")[0]


def _apply_label(draft: TradeDraft, label: str, value: str) -> None:
    """Store the value of a labeled field on the draft. Unknown labels are ignored."""
    if label == "Entry Price":
        draft.entry_price = clean_num(value)
    elif label in _EXIT_PRICE_LABELS:
        draft.exit_price = clean_num(value)
        draft.status = TradeStatus.CLOSED
    elif label in _TRANSACTION_ID_LABELS:
        draft.transaction_id = clean_val(value)
    elif label == "Open Time":
        draft.open_time = format_time(value)
    elif label in _CLOSE_TIME_LABELS:
        draft.close_time = format_time(value)
    elif label == "Open Fee":
        draft.open_fee = abs(clean_num(value))
    elif label == "Close Fee":
        draft.close_fee = abs(clean_num(value))
    elif label == "Funding Fee":
        draft.funding_fee = abs(clean_num(value))
    elif label == "Copiers":
        draft.copiers = parse_int(clean_val(value)) or 0


def parse_vertical_dump(
    lines: list[str],
    lookback: int = PAIR_LOOKBACK,
) -> list[TradeRecord]:
    """Extract trades from pre-split, trimmed, non-empty dump lines.

    Single forward pass with one line of lookahead and one draft at a time.
    Every "Qty" label starts a fresh draft, so an unterminated block is
    dropped. A "P&L" line emits the draft when it has a pair and then resets it.

    Args:
        lines: Trimmed non-empty lines of the export.
        lookback: How many lines above "Qty" to search for the pair.

    Returns:
        Parsed trades in export order. Never raises on malformed blocks.
    """
    batch_ms = int(time.time() * 1000)
    trades: list[TradeRecord] = []
    draft = TradeDraft()

    for i, raw_line in enumerate(lines):
        line = raw_line.replace(",", "").strip()
        next_line = lines[i + 1].strip() if i + 1 < len(lines) else ""

        if line == QTY_LABEL and next_line:
            anchor = find_pair_anchor(lines, i, lookback)
            draft = TradeDraft()
            if anchor is None:
                continue
            _apply_anchor(draft, lines, anchor)
            _apply_quantity(draft, next_line)
        elif next_line:
            _apply_label(draft, line, next_line)

        if line.startswith(RECORD_TERMINATOR):
            if draft.pair and "/" in draft.pair:
                record = draft.finalize(f"DUMP-{batch_ms}-{len(trades)}")
                trades.append(record)
            draft = TradeDraft()

    return trades

