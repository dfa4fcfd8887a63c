"""Spreadsheet access for Shelf.

The spreadsheet is addressed by tab name and 0-based data-row position; the
header row is skipped on reads and the offset is applied on writes. Two
implementations share this interface:

- SheetGateway talks to Google Sheets through gspread.
- MemoryGateway keeps rows in process, for local runs and tests.
"""

import json
import logging
import string

import gspread
from google.oauth2.service_account import Credentials

logger = logging.getLogger(__name__)

BOOKMARKS_TAB = "Bookmarks"
TAGS_TAB = "Tags"
CATEGORIES_TAB = "Categories"

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

DEFAULT_CATEGORIES = [
    "Manga", "Book", "Video", "Game", "Music", "Podcast", "Article", "Data",
]

# Sheet rows are 1-indexed, plus 1 for the header row
HEADER_OFFSET = 2


def _column_letter(width: int) -> str:
    """Return the column letter for a 1-based column count (max 26)."""
    return string.ascii_uppercase[width - 1]


class SheetGateway:
    """Range-based row operations against a Google Sheets spreadsheet."""

    def __init__(self, spreadsheet):
        self.spreadsheet = spreadsheet

    @classmethod
    def from_service_account(cls, key_json: str, sheet_id: str) -> "SheetGateway":
        """Open a spreadsheet with a service account key (JSON text)."""
        info = json.loads(key_json)
        creds = Credentials.from_service_account_info(info, scopes=SCOPES)
        gc = gspread.authorize(creds)
        return cls(gc.open_by_key(sheet_id))

    def _worksheet(self, tab: str):
        return self.spreadsheet.worksheet(tab)

    def get_rows(self, tab: str, width: int) -> list[list[str]]:
        """Read every data row of a tab (header excluded)."""
        return self._worksheet(tab).get_values(f"A2:{_column_letter(width)}")

    def append_row(self, tab: str, cells: list[str]):
        self._worksheet(tab).append_row(cells, value_input_option="RAW")

    def update_row(self, tab: str, position: int, cells: list[str]):
        sheet_row = position + HEADER_OFFSET
        end = _column_letter(len(cells))
        self._worksheet(tab).update(
            range_name=f"A{sheet_row}:{end}{sheet_row}",
            values=[cells],
            value_input_option="RAW",
        )

    def delete_row(self, tab: str, position: int):
        self._worksheet(tab).delete_rows(position + HEADER_OFFSET)


class MemoryGateway:
    """In-process stand-in for the spreadsheet.

    Mimics Sheets by dropping trailing empty cells on write.
    """

    def __init__(self, tabs: dict[str, list[list[str]]] | None = None):
        self.tabs: dict[str, list[list[str]]] = {
            BOOKMARKS_TAB: [],
            TAGS_TAB: [],
            CATEGORIES_TAB: [[c] for c in DEFAULT_CATEGORIES],
        }
        if tabs:
            for tab, rows in tabs.items():
                self.tabs[tab] = [list(row) for row in rows]

    @staticmethod
    def _trim(cells: list[str]) -> list[str]:
        cells = list(cells)
        while cells and cells[-1] == "":
            cells.pop()
        return cells

    def get_rows(self, tab: str, width: int) -> list[list[str]]:
        return [list(row[:width]) for row in self.tabs.get(tab, [])]

    def append_row(self, tab: str, cells: list[str]):
        self.tabs.setdefault(tab, []).append(self._trim(cells))

    def update_row(self, tab: str, position: int, cells: list[str]):
        self.tabs[tab][position] = self._trim(cells)

    def delete_row(self, tab: str, position: int):
        del self.tabs[tab][position]


def build_gateway(backend: str, key_json: str | None = None, sheet_id: str | None = None):
    """Create the gateway selected by STORE_BACKEND."""
    if backend == "memory":
        logger.warning("Using in-memory store; data is lost on restart")
        return MemoryGateway()
    if backend == "sheets":
        if not key_json:
            raise ValueError("GOOGLE_SERVICE_ACCOUNT_KEY is not set")
        if not sheet_id:
            raise ValueError("GOOGLE_SHEET_ID is not set")
        return SheetGateway.from_service_account(key_json, sheet_id)
    raise ValueError(f"Unknown store backend: {backend}")
