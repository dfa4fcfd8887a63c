"""Conversion between spreadsheet rows and Bookmark records.

Rows are plain lists of strings as returned by the Sheets values API. The
column order below must match the header row of the Bookmarks tab exactly.
No validation happens here; unknown categories or visibilities pass through.
"""

from .models import Bookmark

COLUMNS = (
    "ID", "Title", "URL", "Category", "Progress",
    "Notes", "Tags", "CoverURL", "Visibility", "DateAdded",
)

TAG_SEPARATOR = ", "


def split_tags(cell: str) -> list[str]:
    """Decode a Tags cell into tag names, dropping blanks."""
    if not cell:
        return []
    return [t.strip() for t in cell.split(",") if t.strip()]


def join_tags(tags: list[str]) -> str:
    """Encode tag names into a single Tags cell."""
    return TAG_SEPARATOR.join(tags)


def row_to_bookmark(cells: list[str]) -> Bookmark:
    """Convert a (possibly sparse) row into a Bookmark.

    Sheets drops trailing empty cells, so missing columns read as "".
    """
    raw = {col: (cells[i] if i < len(cells) and cells[i] is not None else "")
           for i, col in enumerate(COLUMNS)}
    return Bookmark(
        id=raw["ID"],
        title=raw["Title"],
        url=raw["URL"],
        category=raw["Category"],
        progress=raw["Progress"],
        notes=raw["Notes"],
        tags=split_tags(raw["Tags"]),
        cover_url=raw["CoverURL"],
        visibility=raw["Visibility"],
        date_added=raw["DateAdded"],
    )


def bookmark_to_row(bookmark: Bookmark) -> list[str]:
    """Convert a Bookmark into an ordered row for writing."""
    return [
        bookmark.id,
        bookmark.title,
        bookmark.url,
        bookmark.category,
        bookmark.progress,
        bookmark.notes,
        join_tags(bookmark.tags),
        bookmark.cover_url,
        bookmark.visibility,
        bookmark.date_added,
    ]
