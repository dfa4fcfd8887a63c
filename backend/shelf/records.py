"""Bookmark, tag and category records for Shelf.

All reads load the whole tab; there is no pagination. Callers work with
bookmarks by ID only; row positions never leave this module.
"""

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from . import config
from .gateway import BOOKMARKS_TAB, TAGS_TAB, CATEGORIES_TAB, build_gateway
from .models import Bookmark, PRIVATE, now_iso, parse_iso
from .rows import COLUMNS, bookmark_to_row, row_to_bookmark

logger = logging.getLogger(__name__)

SORT_KEYS = ("dateAdded", "title", "category")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


# =============================================================================
# Filtering and Sorting
# =============================================================================

def filter_bookmarks(
    bookmarks: list[Bookmark],
    category: Optional[str] = None,
    tags: Optional[list[str]] = None,
    query: Optional[str] = None,
    visibility: Optional[str] = None,
) -> list[Bookmark]:
    """Filter bookmarks, keeping their relative order.

    A bookmark must carry every requested tag. ``query`` is a
    case-insensitive substring match on the title.
    """
    result = bookmarks
    if category:
        result = [b for b in result if b.category == category]
    if visibility:
        result = [b for b in result if b.visibility == visibility]
    if tags:
        result = [b for b in result if all(t in b.tags for t in tags)]
    if query:
        needle = query.lower()
        result = [b for b in result if needle in b.title.lower()]
    return list(result)


def sort_bookmarks(bookmarks: list[Bookmark], sort_key: str) -> list[Bookmark]:
    """Sort by dateAdded (newest first), title or category."""
    if sort_key == "title":
        return sorted(bookmarks, key=lambda b: b.title.casefold())
    if sort_key == "category":
        return sorted(bookmarks, key=lambda b: b.category.casefold())
    if sort_key == "dateAdded":
        return sorted(bookmarks, key=lambda b: parse_iso(b.date_added) or _EPOCH, reverse=True)
    raise ValueError(f"Unknown sort key: {sort_key}")


# =============================================================================
# Record Service
# =============================================================================

class RecordService:
    """CRUD over the Bookmarks, Tags and Categories tabs.

    Mutations locate the target row by re-reading the tab and then write by
    position. The pair runs under a lock so requests in this process cannot
    shift rows between the two round trips; other processes writing the same
    spreadsheet can still race.
    """

    def __init__(self, gateway, default_category: str = "Book"):
        self.gateway = gateway
        self.default_category = default_category
        self._lock = threading.Lock()

    # -- bookmarks ------------------------------------------------------------

    def _bookmark_rows(self) -> list[list[str]]:
        return self.gateway.get_rows(BOOKMARKS_TAB, len(COLUMNS))

    def _locate(self, bookmark_id: str) -> tuple[int, Optional[Bookmark]]:
        for position, row in enumerate(self._bookmark_rows()):
            if row and row[0] == bookmark_id:
                return position, row_to_bookmark(row)
        return -1, None

    def list_bookmarks(self, public_only: bool = False) -> list[Bookmark]:
        bookmarks = [row_to_bookmark(row) for row in self._bookmark_rows() if row]
        if public_only:
            bookmarks = [b for b in bookmarks if b.is_public]
        return bookmarks

    def get_bookmark(self, bookmark_id: str) -> Optional[Bookmark]:
        _, bookmark = self._locate(bookmark_id)
        return bookmark

    def create_bookmark(self, fields: dict) -> Bookmark:
        """Create a bookmark from partial fields.

        ``fields`` uses dataclass attribute names; id and date_added are
        always generated here.
        """
        bookmark = Bookmark(
            id=str(uuid.uuid4()),
            title=fields.get("title") or "",
            url=fields.get("url") or "",
            category=fields.get("category") or self.default_category,
            progress=fields.get("progress") or "",
            notes=fields.get("notes") or "",
            tags=list(fields.get("tags") or []),
            cover_url=fields.get("cover_url") or "",
            visibility=fields.get("visibility") or PRIVATE,
            date_added=now_iso(),
        )
        self.gateway.append_row(BOOKMARKS_TAB, bookmark_to_row(bookmark))
        logger.info(f"Created bookmark {bookmark.id}")
        return bookmark

    def update_bookmark(self, bookmark_id: str, fields: dict) -> Optional[Bookmark]:
        """Merge partial fields onto a bookmark and write it back in place.

        id and date_added keep their stored values whatever ``fields`` says.
        """
        with self._lock:
            position, existing = self._locate(bookmark_id)
            if existing is None:
                return None

            changes = {k: v for k, v in fields.items() if k not in ("id", "date_added")}
            if "tags" in changes:
                changes["tags"] = list(changes["tags"] or [])
            updated = replace(existing, **changes)
            updated.id = existing.id
            updated.date_added = existing.date_added

            self.gateway.update_row(BOOKMARKS_TAB, position, bookmark_to_row(updated))
        logger.info(f"Updated bookmark {bookmark_id}")
        return updated

    def delete_bookmark(self, bookmark_id: str) -> bool:
        with self._lock:
            position, existing = self._locate(bookmark_id)
            if existing is None:
                return False
            self.gateway.delete_row(BOOKMARKS_TAB, position)
        logger.info(f"Deleted bookmark {bookmark_id}")
        return True

    # -- tags -----------------------------------------------------------------

    def _column(self, tab: str) -> list[str]:
        return [(row[0] if row else "").strip() for row in self.gateway.get_rows(tab, 1)]

    def list_tags(self) -> list[str]:
        return [t for t in self._column(TAGS_TAB) if t]

    def add_tag(self, name: str) -> str:
        """Append a tag. No duplicate check; callers look first."""
        self.gateway.append_row(TAGS_TAB, [name])
        logger.info(f"Added tag {name!r}")
        return name

    def delete_tag(self, name: str) -> bool:
        """Remove the first tag row matching ``name``.

        Bookmarks that carry the tag keep it.
        """
        with self._lock:
            try:
                position = self._column(TAGS_TAB).index(name)
            except ValueError:
                return False
            self.gateway.delete_row(TAGS_TAB, position)
        logger.info(f"Deleted tag {name!r}")
        return True

    # -- categories -----------------------------------------------------------

    def list_categories(self) -> list[str]:
        return [c for c in self._column(CATEGORIES_TAB) if c]


# Global service instance (initialized lazily)
_service = None


def get_service() -> RecordService:
    """Get or create the record service for the configured store."""
    global _service
    if _service is None:
        gateway = build_gateway(
            config.STORE_BACKEND,
            key_json=config.GOOGLE_SERVICE_ACCOUNT_KEY,
            sheet_id=config.GOOGLE_SHEET_ID,
        )
        _service = RecordService(gateway, default_category=config.DEFAULT_CATEGORY)
    return _service
