"""Funding fee CSV parsing.

Layout (header row skipped): date, asset, amount, type. Amounts keep their
sign: negative is a cost, positive a credit.
"""

import re
import time
from decimal import Decimal

from tradebook.logging import get_logger
from tradebook.models import FundingRecord
from tradebook.parsing.normalize import format_time, parse_decimal

logger = get_logger(__name__)

_LINE_SPLIT_RE = re.compile(r"\r?\n")

DEFAULT_ASSET = "USDT"
DEFAULT_TYPE = "Funding Fee"


def parse_funding(csv_text: str) -> list[FundingRecord]:
    """Parse a funding fee export into FundingRecords.

    Missing columns fall back to defaults (asset USDT, amount 0,
    type "Funding Fee", date now). Blank lines are skipped.
    """
    if not csv_text:
        return []

    batch_ms = int(time.time() * 1000)
    lines = _LINE_SPLIT_RE.split(csv_text)
    records: list[FundingRecord] = []

    for index in range(1, len(lines)):
        line = lines[index].strip()
        if not line:
            continue

        cols = line.split(",") + ["", "", ""]
        records.append(
            FundingRecord(
                id=f"FUND-{batch_ms}-{index}",
                date=format_time(cols[0]),
                asset=cols[1] or DEFAULT_ASSET,
                amount=parse_decimal(cols[2]) or Decimal("0"),
                type=cols[3] or DEFAULT_TYPE,
            )
        )

    logger.debug("funding_parsed", lines=len(lines), records=len(records))
    return records
