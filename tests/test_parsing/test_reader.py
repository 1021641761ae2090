"""Tests for uploaded file intake."""

import pytest

from tradebook.exceptions import TradebookError, UnsupportedFormatError
from tradebook.parsing.reader import read_file_content


class TestReadFileContent:
    @pytest.mark.parametrize("filename", ["trades.xlsx", "TRADES.XLS", "export.Xlsx"])
    def test_spreadsheets_rejected(self, filename: str) -> None:
        with pytest.raises(UnsupportedFormatError):
            read_file_content(filename, b"PK\x03\x04")

    def test_rejection_is_a_tradebook_error(self) -> None:
        with pytest.raises(TradebookError):
            read_file_content("book.xls", b"")

    def test_csv_decoded(self) -> None:
        assert read_file_content("trades.csv", "a,b\n1,2".encode()) == "a,b\n1,2"

    def test_bom_stripped(self) -> None:
        assert read_file_content("t.csv", b"\xef\xbb\xbfDate,Asset") == "Date,Asset"

    def test_invalid_bytes_replaced(self) -> None:
        assert read_file_content("t.csv", b"ok\xff") == "ok\ufffd"
