"""Uploaded file intake: format gate and text decoding."""

from tradebook.exceptions import UnsupportedFormatError

SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")


def read_file_content(filename: str, data: bytes) -> str:
    """Decode an uploaded export for the CSV parsers.

    Spreadsheet workbooks are rejected before any parsing happens.
    Text is decoded as UTF-8 with a leading BOM removed and undecodable
    bytes replaced.

    Raises:
        UnsupportedFormatError: filename has an Excel extension.
    """
    if filename.lower().endswith(SPREADSHEET_EXTENSIONS):
        raise UnsupportedFormatError("Excel files are not supported. Please use CSV.")
    return data.decode("utf-8-sig", errors="replace")
