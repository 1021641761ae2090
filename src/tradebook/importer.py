"""Bulk import of trade and funding exports into the store.

Imported trades are prepended to the user's existing trades and the whole
set is written back (delete-all then insert), so the stored state matches
exactly what the dashboard shows after an import. Funding imports are
upserted on top of existing records.
"""

from dataclasses import dataclass
from typing import Literal

from tradebook.config import ImportSettings
from tradebook.data.store import TradebookStore
from tradebook.exceptions import FileTooLargeError
from tradebook.logging import get_logger
from tradebook.parsing.funding import parse_funding
from tradebook.parsing.reader import read_file_content
from tradebook.parsing.trades import parse_trades

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one file import. imported == 0 means no valid records were found."""

    kind: Literal["trades", "funding"]
    imported: int

    @property
    def message(self) -> str:
        noun = "trades" if self.kind == "trades" else "funding records"
        if self.imported == 0:
            return f"No valid {noun} found. Check the file format."
        return f"Successfully imported {self.imported} {noun}."


class ImportService:
    """Reads uploaded exports, parses them and merges the records into the store.

    Args:
        store: Record store to merge into.
        settings: Import limits and parser heuristics.
    """

    def __init__(self, store: TradebookStore, settings: ImportSettings) -> None:
        self._store = store
        self._settings = settings

    def _decode(self, filename: str, data: bytes) -> str:
        if len(data) > self._settings.max_upload_bytes:
            raise FileTooLargeError(
                f"File too large: {len(data)} bytes (limit {self._settings.max_upload_bytes})"
            )
        return read_file_content(filename, data)

    async def import_trades(self, user_id: str, filename: str, data: bytes) -> ImportResult:
        """Parse a trade export and merge it ahead of the user's existing trades.

        Raises:
            UnsupportedFormatError: Spreadsheet upload.
            FileTooLargeError: Upload above max_upload_bytes.
        """
        content = self._decode(filename, data)
        new_trades = parse_trades(content, pair_lookback=self._settings.pair_lookback)

        if not new_trades:
            logger.warning("trade_import_empty", filename=filename)
            return ImportResult(kind="trades", imported=0)

        existing = await self._store.fetch_trades(user_id)
        await self._store.replace_trades(new_trades + existing, user_id)

        logger.info(
            "trades_imported",
            filename=filename,
            imported=len(new_trades),
            total=len(new_trades) + len(existing),
        )
        return ImportResult(kind="trades", imported=len(new_trades))

    async def import_funding(self, user_id: str, filename: str, data: bytes) -> ImportResult:
        """Parse a funding export and upsert the records.

        Raises:
            UnsupportedFormatError: Spreadsheet upload.
            FileTooLargeError: Upload above max_upload_bytes.
        """
        content = self._decode(filename, data)
        new_records = parse_funding(content)

        if not new_records:
            logger.warning("funding_import_empty", filename=filename)
            return ImportResult(kind="funding", imported=0)

        await self._store.sync_funding(new_records, user_id)

        logger.info("funding_imported", filename=filename, imported=len(new_records))
        return ImportResult(kind="funding", imported=len(new_records))
