"""Custom exceptions for the tradebook.

Only input that cannot be parsed at all (wrong file format) and persistence
failures raise. Malformed rows and fields degrade to defaults instead.
"""


class TradebookError(Exception):
    """Base exception for all tradebook errors."""


class UnsupportedFormatError(TradebookError):
    """Raised when an uploaded file is not CSV text (e.g. an Excel workbook)."""


class StoreError(TradebookError):
    """Raised when the record store cannot complete a read or write."""


class FileTooLargeError(TradebookError):
    """Raised when an uploaded export exceeds the configured size limit."""
