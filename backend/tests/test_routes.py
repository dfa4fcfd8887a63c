"""Tests for HTTP route handling.

These tests drive the FastHTML app end to end against the in-memory store.
"""

from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, patch
from starlette.concurrency import run_in_threadpool
from starlette.testclient import TestClient

from shelf import api
from shelf.models import parse_iso


@pytest.fixture
def app_client(service, mock_config):
    """Create a test client backed by the in-memory record service."""
    with patch("shelf.main.records.get_service", return_value=service):
        from shelf.main import app
        client = TestClient(app, raise_server_exceptions=False)
        yield client


@pytest.fixture
def admin_client(app_client):
    """Log in and attach the token to every request."""
    response = app_client.post("/auth/login", json={"password": "test-password"})
    app_client.headers["Authorization"] = f"Bearer {response.json()['token']}"
    return app_client


class TestPublicRoutes:
    """Test routes that don't require authentication."""

    def test_health_check(self, app_client):
        response = app_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_public_bookmarks(self, app_client, mixed_bookmarks):
        response = app_client.get("/bookmarks")

        assert response.status_code == 200
        assert [b["id"] for b in response.json()] == ["b1", "b3", "b4"]

    def test_public_bookmarks_filtered(self, app_client, mixed_bookmarks):
        response = app_client.get("/bookmarks", params={"category": "Book", "sort": "title"})

        assert [b["title"] for b in response.json()] == ["anathem"]

    def test_tags_and_categories(self, app_client, gateway):
        gateway.tabs["Tags"] = [["scifi"]]

        assert app_client.get("/tags").json() == ["scifi"]
        assert "Manga" in app_client.get("/categories").json()

    def test_fetch_cover(self, app_client):
        with patch("shelf.api.covers.fetch_cover", new=AsyncMock(return_value="https://x.test/c.jpg")):
            response = app_client.get("/fetch-cover", params={"url": "https://x.test/page"})

        assert response.status_code == 200
        assert response.json() == {"coverUrl": "https://x.test/c.jpg"}

    def test_fetch_cover_requires_url(self, app_client):
        assert app_client.get("/fetch-cover").status_code == 400


class TestLoginRoutes:
    """Test login and logout over HTTP."""

    def test_login(self, app_client):
        response = app_client.post("/auth/login", json={"password": "test-password"})

        assert response.status_code == 200
        assert response.json()["token"]

    def test_wrong_password(self, app_client):
        response = app_client.post("/auth/login", json={"password": "wrong"})

        assert response.status_code == 401
        assert "error" in response.json()

    def test_empty_password(self, app_client):
        assert app_client.post("/auth/login", json={"password": ""}).status_code == 400

    def test_malformed_body(self, app_client):
        response = app_client.post(
            "/auth/login", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_lone_surrogate_password(self, app_client):
        response = app_client.post(
            "/auth/login", content=b'{"password": "\\ud800"}', headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_logout(self, admin_client):
        response = admin_client.delete("/auth/login")

        assert response.status_code == 200
        assert response.json() == {"success": True}


class TestProtectedRoutes:
    """Test the auth guard on mutating routes."""

    def test_create_without_header(self, app_client):
        response = app_client.post("/bookmarks", json={"title": "Foo", "url": "https://x.test"})

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    def test_create_with_invalid_token(self, app_client):
        response = app_client.post(
            "/bookmarks",
            json={"title": "Foo", "url": "https://x.test"},
            headers={"Authorization": "Bearer invalid"},
        )
        assert response.status_code == 401

    def test_admin_listing_requires_token(self, app_client, mixed_bookmarks):
        assert app_client.get("/admin/bookmarks").status_code == 401

    def test_admin_listing(self, admin_client, mixed_bookmarks):
        response = admin_client.get("/admin/bookmarks")

        assert response.status_code == 200
        assert len(response.json()) == 4

    def test_tag_mutations(self, admin_client):
        assert admin_client.post("/tags", json={"tag": "horror"}).status_code == 201
        assert admin_client.get("/tags").json() == ["horror"]

        assert admin_client.delete("/tags", params={"tag": "horror"}).status_code == 200
        assert admin_client.delete("/tags", params={"tag": "horror"}).status_code == 404

    def test_tag_mutations_require_token(self, app_client):
        assert app_client.post("/tags", json={"tag": "horror"}).status_code == 401
        assert app_client.delete("/tags", params={"tag": "horror"}).status_code == 401


class TestBookmarkLifecycle:
    """Create, update and delete a bookmark over HTTP."""

    def test_create_update_delete(self, admin_client):
        created = admin_client.post(
            "/bookmarks", json={"title": "Foo", "url": "https://x.test", "category": "Book"}
        )
        assert created.status_code == 201
        bookmark = created.json()
        assert bookmark["id"]
        assert bookmark["visibility"] == "private"
        assert bookmark["tags"] == []
        added = parse_iso(bookmark["dateAdded"])
        assert abs(datetime.now(timezone.utc) - added) < timedelta(seconds=60)

        updated = admin_client.put(f"/bookmarks/{bookmark['id']}", json={"progress": "p.12"})
        assert updated.status_code == 200
        body = updated.json()
        assert body["progress"] == "p.12"
        for key in ("id", "title", "url", "dateAdded"):
            assert body[key] == bookmark[key]

        deleted = admin_client.delete(f"/bookmarks/{bookmark['id']}")
        assert deleted.status_code == 200
        assert deleted.json() == {"success": True}

        assert admin_client.get(f"/bookmarks/{bookmark['id']}").status_code == 404

    def test_update_keeps_original_date(self, admin_client):
        bookmark = admin_client.post("/bookmarks", json={"title": "Foo", "url": "https://x.test"}).json()

        body = admin_client.put(
            f"/bookmarks/{bookmark['id']}",
            json={"title": "Bar", "dateAdded": "1990-01-01T00:00:00.000Z"},
        ).json()

        assert body["title"] == "Bar"
        assert body["dateAdded"] == bookmark["dateAdded"]

    def test_private_bookmark_readable_by_id(self, app_client, admin_client):
        bookmark = admin_client.post("/bookmarks", json={"title": "Foo", "url": "https://x.test"}).json()

        assert admin_client.get(f"/bookmarks/{bookmark['id']}").status_code == 200
        del admin_client.headers["Authorization"]
        response = app_client.get(f"/bookmarks/{bookmark['id']}")

        assert response.status_code == 200
        assert response.json()["visibility"] == "private"
        assert bookmark["id"] not in [b["id"] for b in app_client.get("/bookmarks").json()]

    def test_update_missing(self, admin_client):
        assert admin_client.put("/bookmarks/nope", json={"progress": "x"}).status_code == 404

    def test_delete_missing(self, admin_client):
        assert admin_client.delete("/bookmarks/nope").status_code == 404

    def test_malformed_update_body(self, admin_client, test_bookmark):
        response = admin_client.put(
            f"/bookmarks/{test_bookmark.id}", content=b"{\"progress\": ", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_mutations_run_off_event_loop(self, admin_client, test_bookmark):
        with patch("shelf.main.run_in_threadpool", wraps=run_in_threadpool) as pool:
            created = admin_client.post("/bookmarks", json={"title": "Foo", "url": "https://x.test"})
            updated = admin_client.put(f"/bookmarks/{test_bookmark.id}", json={"progress": "Ch. 2"})
            tagged = admin_client.post("/tags", json={"tag": "scifi"})

        assert (created.status_code, updated.status_code, tagged.status_code) == (201, 200, 201)
        handlers = [c.args[1] for c in pool.call_args_list]
        assert handlers == [api.api_bookmarks_create, api.api_bookmark_update, api.api_tags_add]


class TestServerErrors:
    """Test failures raised outside the api handlers."""

    def test_store_failure_returns_json(self, app_client):
        with patch("shelf.main.records.get_service", side_effect=ValueError("GOOGLE_SHEET_ID is required")):
            response = app_client.get("/bookmarks")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}

    def test_store_failure_on_mutation(self, admin_client):
        with patch("shelf.main.records.get_service", side_effect=ValueError("unknown STORE_BACKEND")):
            response = admin_client.post("/tags", json={"tag": "scifi"})

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
