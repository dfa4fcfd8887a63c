"""Pytest fixtures for Shelf tests."""

import os
import sys
import pytest
from unittest.mock import patch

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Required settings must exist before shelf.config is imported
os.environ["SESSION_SECRET"] = "test-secret-key"
os.environ["ADMIN_PASSWORD"] = "test-password"
os.environ["STORE_BACKEND"] = "memory"


@pytest.fixture
def gateway():
    """Create an in-memory spreadsheet."""
    from shelf.gateway import MemoryGateway

    return MemoryGateway()


@pytest.fixture
def service(gateway):
    """Create a record service over the in-memory spreadsheet."""
    from shelf.records import RecordService

    return RecordService(gateway, default_category="Book")


@pytest.fixture
def token():
    """Issue a valid admin token."""
    from shelf import auth

    return auth.issue_token()


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_bookmark(service):
    """Create a private test bookmark."""
    return service.create_bookmark({
        "title": "Example Book",
        "url": "https://example.com/book",
        "category": "Book",
        "tags": ["fantasy", "favorite"],
    })


@pytest.fixture
def mixed_bookmarks(gateway):
    """Seed rows with mixed visibility, oldest first."""
    gateway.tabs["Bookmarks"] = [
        ["b1", "Berserk", "https://x.test/1", "Manga", "vol. 3", "", "dark, favorite", "", "public", "2024-01-01T00:00:00.000Z"],
        ["b2", "Dune", "https://x.test/2", "Book", "", "", "scifi", "", "private", "2024-02-01T00:00:00.000Z"],
        ["b3", "anathem", "https://x.test/3", "Book", "p.40", "", "scifi, favorite", "", "public", "2024-03-01T00:00:00.000Z"],
        ["b4", "Celeste", "https://x.test/4", "Game", "", "", "", "", "public", "2024-04-01T00:00:00.000Z"],
    ]
    return gateway.tabs["Bookmarks"]


@pytest.fixture
def mock_config():
    """Mock configuration for tests."""
    with patch.multiple(
        "shelf.config",
        SECRET_KEY="test-secret-key",
        ADMIN_PASSWORD="test-password",
        STORE_BACKEND="memory",
        GOOGLE_SERVICE_ACCOUNT_KEY=None,
        GOOGLE_SHEET_ID=None,
        DEFAULT_CATEGORY="Book",
        COVER_FETCH_TIMEOUT=6.0,
    ):
        yield
