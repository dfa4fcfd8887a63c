"""Configuration management for Shelf.

Loads configuration from environment variables with .env file support.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


def _get_env(key: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default and required check."""
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set")
    return value


def _get_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    return int(value)


def _get_float(key: str, default: float) -> float:
    """Get float environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    return float(value)


# Authentication
SECRET_KEY: str = _get_env("SESSION_SECRET", required=True)  # Signs admin tokens
ADMIN_PASSWORD: str = _get_env("ADMIN_PASSWORD", required=True)

# Record store
STORE_BACKEND: str = _get_env("STORE_BACKEND", "sheets")  # 'sheets' or 'memory'
GOOGLE_SERVICE_ACCOUNT_KEY: str | None = _get_env("GOOGLE_SERVICE_ACCOUNT_KEY")
GOOGLE_SHEET_ID: str | None = _get_env("GOOGLE_SHEET_ID")

# Bookmarks
DEFAULT_CATEGORY: str = _get_env("DEFAULT_CATEGORY", "Book")

# Cover scraping
COVER_FETCH_TIMEOUT: float = _get_float("COVER_FETCH_TIMEOUT", 6.0)

# Server
PORT: int = _get_int("PORT", 5001)
LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO").upper()