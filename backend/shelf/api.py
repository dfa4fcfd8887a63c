"""JSON API endpoints for Shelf.

Read endpoints are public; mutations and the full admin listing require a
Bearer token obtained from the login endpoint.
"""

import json
import logging
from typing import Optional
from fasthtml.common import Response

from .models import VISIBILITIES, fields_from_json
from .records import SORT_KEYS, filter_bookmarks, sort_bookmarks
from . import auth
from . import covers

logger = logging.getLogger(__name__)


# =============================================================================
# Error Response Helpers
# =============================================================================

def json_response(data, status: int = 200) -> Response:
    """Create a JSON response."""
    return Response(
        json.dumps(data),
        status_code=status,
        media_type="application/json"
    )


def error_response(message: str, code: str, status: int = 400) -> Response:
    """Create an error JSON response."""
    return json_response({"error": message, "code": code}, status)


def validation_error(message: str) -> Response:
    return error_response(message, "VALIDATION_ERROR", 400)


def unauthorized_error(message: str = "Unauthorized") -> Response:
    return error_response(message, "UNAUTHORIZED", 401)


def not_found_error(message: str = "Not found") -> Response:
    return error_response(message, "NOT_FOUND", 404)


def internal_error(message: str) -> Response:
    return error_response(message, "INTERNAL_ERROR", 500)


def success_response() -> Response:
    return json_response({"success": True})


# =============================================================================
# Auth Guard
# =============================================================================

def require_admin(request) -> Optional[Response]:
    """Return an error response unless the request carries a valid token."""
    if not auth.authorize(request):
        return unauthorized_error()
    return None


# =============================================================================
# Input Validation
# =============================================================================

def validate_bookmark_fields(data: dict, partial: bool = False) -> tuple[dict, Optional[str]]:
    """Map a JSON body to bookmark fields and validate them.

    With ``partial`` only the keys present are checked; otherwise title and
    url are required. Returns (fields, error_message).
    """
    fields = fields_from_json(data)

    for key in ("title", "url", "category", "progress", "notes", "cover_url", "visibility"):
        if key in fields:
            if fields[key] is None:
                fields[key] = ""
            if not isinstance(fields[key], str):
                return fields, f"{key} must be a string"
            if key in ("title", "url"):
                fields[key] = fields[key].strip()

    if not partial or "title" in fields:
        if not fields.get("title"):
            return fields, "title is required"

    if not partial or "url" in fields:
        if not fields.get("url"):
            return fields, "url is required"
        if not covers.is_http_url(fields["url"]):
            return fields, "url must be a valid http(s) URL"

    if "visibility" in fields:
        if not fields["visibility"] and not partial:
            del fields["visibility"]  # default applies
        elif fields["visibility"] not in VISIBILITIES:
            return fields, f"visibility must be one of: {', '.join(VISIBILITIES)}"

    if "tags" in fields:
        tags = fields["tags"] or []
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            return fields, "tags must be a list of strings"
        fields["tags"] = [t.strip() for t in tags if t.strip()]

    return fields, None


def _listing_params(params) -> tuple[dict, Optional[str]]:
    """Read filter and sort query parameters."""
    sort_key = params.get("sort") or None
    if sort_key and sort_key not in SORT_KEYS:
        return {}, f"sort must be one of: {', '.join(SORT_KEYS)}"
    return {
        "category": params.get("category") or None,
        "tags": [t for t in params.getlist("tag") if t],
        "query": params.get("q") or None,
        "sort": sort_key,
    }, None


def _apply_listing(bookmarks, options: dict, visibility: Optional[str] = None) -> list[dict]:
    bookmarks = filter_bookmarks(
        bookmarks,
        category=options["category"],
        tags=options["tags"],
        query=options["query"],
        visibility=visibility,
    )
    if options["sort"]:
        bookmarks = sort_bookmarks(bookmarks, options["sort"])
    return [b.to_dict() for b in bookmarks]


# =============================================================================
# Session API Endpoints
# =============================================================================

def api_login(request, data: dict) -> Response:
    """Exchange the admin password for a token.

    POST /auth/login

    Body:
        password: str (required)
    """
    password = data.get("password")
    if not password or not isinstance(password, str):
        return validation_error("Password is required")

    if not auth.check_password(password):
        logger.warning("Rejected admin login with wrong password")
        return unauthorized_error("Invalid password")

    return json_response({"token": auth.issue_token()})


def api_logout(request) -> Response:
    """DELETE /auth/login

    Tokens are stateless, so there is nothing to revoke server-side.
    """
    return success_response()


# =============================================================================
# Bookmark API Endpoints
# =============================================================================

def api_bookmarks_list(request, service, params) -> Response:
    """List public bookmarks.

    GET /bookmarks?category=&tag=&q=&sort=
    """
    options, error = _listing_params(params)
    if error:
        return validation_error(error)

    try:
        bookmarks = service.list_bookmarks(public_only=True)
    except Exception:
        logger.exception("GET /bookmarks failed")
        return internal_error("Failed to fetch bookmarks")

    return json_response(_apply_listing(bookmarks, options))


def api_admin_bookmarks_list(request, service, params) -> Response:
    """List every bookmark, public and private.

    GET /admin/bookmarks?category=&tag=&q=&visibility=&sort=
    Requires: admin token
    """
    auth_error = require_admin(request)
    if auth_error:
        return auth_error

    options, error = _listing_params(params)
    if error:
        return validation_error(error)
    visibility = params.get("visibility") or None
    if visibility and visibility not in VISIBILITIES:
        return validation_error(f"visibility must be one of: {', '.join(VISIBILITIES)}")

    try:
        bookmarks = service.list_bookmarks()
    except Exception:
        logger.exception("GET /admin/bookmarks failed")
        return internal_error("Failed to fetch bookmarks")

    return json_response(_apply_listing(bookmarks, options, visibility))


def api_bookmark_get(request, service, bookmark_id: str) -> Response:
    """Fetch one bookmark.

    GET /bookmarks/{id}
    """
    try:
        bookmark = service.get_bookmark(bookmark_id)
    except Exception:
        logger.exception(f"GET /bookmarks/{bookmark_id} failed")
        return internal_error("Failed to fetch bookmark")

    if not bookmark:
        return not_found_error()

    return json_response(bookmark.to_dict())


def api_bookmarks_create(request, service, data: dict) -> Response:
    """Create a bookmark.

    POST /bookmarks
    Requires: admin token

    Body:
        title: str (required)
        url: str (required)
        category, progress, notes, coverUrl: str (optional)
        tags: list[str] (optional)
        visibility: 'public' | 'private' (optional, default private)
    """
    auth_error = require_admin(request)
    if auth_error:
        return auth_error

    fields, error = validate_bookmark_fields(data)
    if error:
        return validation_error(error)

    try:
        bookmark = service.create_bookmark(fields)
    except Exception:
        logger.exception("POST /bookmarks failed")
        return internal_error("Failed to create bookmark")

    return json_response(bookmark.to_dict(), 201)


def api_bookmark_update(request, service, bookmark_id: str, data: dict) -> Response:
    """Update a bookmark with partial fields.

    PUT /bookmarks/{id}
    Requires: admin token

    id and dateAdded in the body are ignored.
    """
    auth_error = require_admin(request)
    if auth_error:
        return auth_error

    fields, error = validate_bookmark_fields(data, partial=True)
    if error:
        return validation_error(error)

    try:
        bookmark = service.update_bookmark(bookmark_id, fields)
    except Exception:
        logger.exception(f"PUT /bookmarks/{bookmark_id} failed")
        return internal_error("Failed to update bookmark")

    if not bookmark:
        return not_found_error()

    return json_response(bookmark.to_dict())


def api_bookmark_delete(request, service, bookmark_id: str) -> Response:
    """Delete a bookmark.

    DELETE /bookmarks/{id}
    Requires: admin token
    """
    auth_error = require_admin(request)
    if auth_error:
        return auth_error

    try:
        deleted = service.delete_bookmark(bookmark_id)
    except Exception:
        logger.exception(f"DELETE /bookmarks/{bookmark_id} failed")
        return internal_error("Failed to delete bookmark")

    if not deleted:
        return not_found_error()

    return success_response()


# =============================================================================
# Tag and Category API Endpoints
# =============================================================================

def api_tags_list(request, service) -> Response:
    """GET /tags"""
    try:
        tags = service.list_tags()
    except Exception:
        logger.exception("GET /tags failed")
        return internal_error("Failed to fetch tags")

    return json_response(tags)


def api_tags_add(request, service, data: dict) -> Response:
    """Add a tag.

    POST /tags
    Requires: admin token

    Body:
        tag: str (required)
    """
    auth_error = require_admin(request)
    if auth_error:
        return auth_error

    tag = data.get("tag")
    tag = tag.strip() if isinstance(tag, str) else ""
    if not tag:
        return validation_error("Tag is required")

    try:
        service.add_tag(tag)
    except Exception:
        logger.exception("POST /tags failed")
        return internal_error("Failed to add tag")

    return json_response({"tag": tag}, 201)


def api_tags_delete(request, service, tag: Optional[str]) -> Response:
    """Delete a tag. Bookmarks using it keep the tag string.

    DELETE /tags?tag=<name>
    Requires: admin token
    """
    auth_error = require_admin(request)
    if auth_error:
        return auth_error

    tag = (tag or "").strip()
    if not tag:
        return validation_error("Tag query param required")

    try:
        deleted = service.delete_tag(tag)
    except Exception:
        logger.exception("DELETE /tags failed")
        return internal_error("Failed to delete tag")

    if not deleted:
        return not_found_error("Tag not found")

    return success_response()


def api_categories_list(request, service) -> Response:
    """GET /categories"""
    try:
        categories = service.list_categories()
    except Exception:
        logger.exception("GET /categories failed")
        return internal_error("Failed to fetch categories")

    return json_response(categories)


# =============================================================================
# Cover Lookup
# =============================================================================

async def api_fetch_cover(request, url: Optional[str]) -> Response:
    """Scrape a cover image URL for a page.

    GET /fetch-cover?url=<page url>
    Always 200 with {"coverUrl": ""} when nothing is found.
    """
    if not url:
        return validation_error("url param required")

    cover_url = await covers.fetch_cover(url)
    return json_response({"coverUrl": cover_url})
