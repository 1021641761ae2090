"""Record persistence layer.

Provides the SQLite database manager and the typed store for trades,
funding records and per-user settings.
"""

from tradebook.data.database import TradebookDatabase
from tradebook.data.store import TradebookStore, stable_id

__all__ = [
    "TradebookDatabase",
    "TradebookStore",
    "stable_id",
]
