"""Field normalization helpers shared by every CSV dialect.

All helpers are pure and total: malformed input degrades to a documented
default instead of raising. Numeric parsing is prefix-based ("12.5abc" -> 12.5),
mirroring how spreadsheet exports are read by lenient float parsers.
"""

import re
from datetime import datetime, timezone
from decimal import DefaultContext, Decimal, InvalidOperation

UNKNOWN_MONTH = "UNKNOWN"

# Checked in order; USDT must win over USD.
QUOTE_SUFFIXES = ("USDT", "USDC", "USD")

_NUMERIC_PREFIX_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_PREFIX_RE = re.compile(r"[+-]?\d+")
_TRAILING_UNIT_RE = re.compile(r"\s+[A-Z]+$")
_CURRENCY_TOKEN_RE = re.compile(r"USDT|ETH|BTC|SOL|XRP|BNB|USD|EUR", re.IGNORECASE)
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_WHITESPACE_RE = re.compile(r"\s")


def parse_decimal(text: str | None) -> Decimal | None:
    """Parse the leading numeric prefix of text.

    Args:
        text: Raw field text. Leading whitespace is ignored.

    Returns:
        Decimal value of the prefix, or None when there is no numeric prefix
        or its exponent is outside the default context range.
    """
    if not text:
        return None
    match = _NUMERIC_PREFIX_RE.match(text.lstrip())
    if match is None:
        return None
    try:
        value = Decimal(match.group(0))
    except InvalidOperation:
        return None
    return value if in_exponent_range(value) else None


def in_exponent_range(value: Decimal) -> bool:
    """True when value fits the default decimal context (e.g. rejects 1e999999999)."""
    return DefaultContext.Emin <= value.adjusted() <= DefaultContext.Emax


def parse_int(text: str | None) -> int | None:
    """Parse the leading integer prefix of text, or None."""
    if not text:
        return None
    match = _INTEGER_PREFIX_RE.match(text.lstrip())
    if match is None:
        return None
    return int(match.group(0))


def normalize_pair(raw: str | None) -> str:
    """Normalize a trading pair to BASE/QUOTE form.

    "ethusdt" -> "ETH/USDT", "BTC / usdt" -> "BTC/USDT". Tokens without a
    recognizable quote suffix are returned uppercased with no separator;
    callers decide whether to reject them.
    """
    if not raw:
        return ""
    pair = raw.replace(",", "").strip().upper()

    if "/" in pair:
        return _WHITESPACE_RE.sub("", pair)

    for suffix in QUOTE_SUFFIXES:
        if pair.endswith(suffix) and len(pair) > len(suffix):
            return f"{pair.replace(suffix, '', 1)}/{suffix}"

    return pair


def clean_num(val: str | None) -> Decimal:
    """Parse a display number such as "1,234.5 USDT" into a Decimal.

    Thousands separators, a trailing unit word and the first currency token
    are stripped before parsing. Returns Decimal("0") when nothing parses.
    """
    if not val:
        return Decimal("0")
    cleaned = val.replace(",", "")
    cleaned = _TRAILING_UNIT_RE.sub("", cleaned).strip()
    cleaned = _CURRENCY_TOKEN_RE.sub("", cleaned, count=1).strip()
    return parse_decimal(cleaned) or Decimal("0")


def clean_val(val: str | None) -> str:
    """Strip thousands separators and surrounding whitespace."""
    if not val:
        return ""
    return val.replace(",", "").strip()


def _now_iso() -> str:
    """Current UTC time as an ISO string with millisecond precision."""
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


def format_time(raw: str | None) -> str:
    """Normalize an export timestamp toward "YYYY-MM-DD HH:MM:SS".

    - empty input -> current UTC time (ISO form)
    - already "YYYY-MM-DD..." -> returned trimmed, unchanged
    - "MM/DD/YYYY [time]" -> "YYYY-MM-DD time" (time defaults to 00:00:00)
    - anything else -> trimmed input

    A date part that cannot be unpacked returns raw unmodified.
    """
    if not raw:
        return _now_iso()
    try:
        clean = raw.strip()
        if _ISO_DATE_RE.match(clean):
            return clean

        parts = clean.split(" ")
        date_part = parts[0]
        time_part = parts[1] if len(parts) > 1 else ""
        if not date_part:
            return clean

        if "/" in date_part:
            month, day, year = date_part.split("/")
            return f"{year}-{month.zfill(2)}-{day.zfill(2)} {time_part or '00:00:00'}"
        return clean
    except ValueError:
        return raw


def get_month_key(date_str: str | None) -> str:
    """Return the YYYY-MM prefix of a timestamp, or UNKNOWN when empty."""
    if not date_str:
        return UNKNOWN_MONTH
    return date_str[:7]
