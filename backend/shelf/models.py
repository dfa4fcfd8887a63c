"""Record types for Shelf.

Bookmarks are stored one per spreadsheet row; tags and categories are bare
strings kept in their own single-column tabs.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

PUBLIC = "public"
PRIVATE = "private"
VISIBILITIES = (PUBLIC, PRIVATE)

# JSON key -> dataclass attribute
JSON_FIELDS = {
    "id": "id",
    "title": "title",
    "url": "url",
    "category": "category",
    "progress": "progress",
    "notes": "notes",
    "tags": "tags",
    "coverUrl": "cover_url",
    "visibility": "visibility",
    "dateAdded": "date_added",
}


@dataclass
class Bookmark:
    """A saved bookmark/media item."""
    id: str = ""
    title: str = ""
    url: str = ""
    category: str = ""
    progress: str = ""
    notes: str = ""
    tags: list[str] = field(default_factory=list)
    cover_url: str = ""
    visibility: str = PRIVATE
    date_added: str = ""

    def to_dict(self) -> dict:
        """Serialize using the camelCase keys of the JSON API."""
        return {key: getattr(self, attr) for key, attr in JSON_FIELDS.items()}

    @property
    def is_public(self) -> bool:
        return self.visibility == PUBLIC


def fields_from_json(data: dict) -> dict:
    """Map camelCase JSON keys to dataclass attribute names.

    Unknown keys are dropped.
    """
    return {JSON_FIELDS[key]: value for key, value in data.items() if key in JSON_FIELDS}


# Helper functions for timestamp handling

def now_iso() -> str:
    """Return current UTC timestamp in ISO format with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(timestamp: str) -> datetime | None:
    """Parse an ISO timestamp, returning None for empty or malformed values."""
    if not timestamp:
        return None
    try:
        dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
