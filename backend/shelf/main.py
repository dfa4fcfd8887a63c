"""Shelf FastHTML Application Entry Point.

This module creates the FastHTML application and registers the JSON API
routes. Handlers live in ``api``; this module only parses requests and
passes them along with the record service.
"""

import json
import logging
from fasthtml.common import *
from starlette.concurrency import run_in_threadpool

from . import config
from . import records
from . import api

logger = logging.getLogger(__name__)


# =============================================================================
# Exception Handlers
# =============================================================================

def handle_bad_json(request, exc):
    """Answer bodies that fail to parse as JSON with a validation error."""
    return api.validation_error("Request body must be valid JSON")


def handle_server_error(request, exc):
    """Answer anything the handlers did not catch with the JSON 500 shape."""
    logger.error(f"{request.method} {request.url.path} failed", exc_info=exc)
    return api.internal_error("Internal server error")


# =============================================================================
# Application Setup
# =============================================================================

app = FastHTML(
    secret_key=config.SECRET_KEY,
    exception_handlers={
        json.JSONDecodeError: handle_bad_json,
        Exception: handle_server_error,
    },
)

# Get route decorator
rt = app.route


# Service getter for dependency injection
def get_service():
    return records.get_service()


def call_api(handler, request, *args):
    """Call a blocking api handler with the record service."""
    return handler(request, get_service(), *args)


async def parse_json_body(request) -> dict:
    """Parse a JSON object body, treating anything else as empty."""
    try:
        body = await request.body()
        data = json.loads(body) if body else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def setup_logging(level: str) -> logging.Logger:
    """Configure logging with the specified level."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logger = logging.getLogger("shelf")
    logger.setLevel(log_level)
    return logger


@rt("/health")
def health_check(request):
    return api.json_response({"status": "ok"})


# =============================================================================
# Session Routes
# =============================================================================

@rt("/auth/login", methods=["POST"])
async def login(request):
    data = await parse_json_body(request)
    return api.api_login(request, data)


@rt("/auth/login", methods=["DELETE"])
def logout(request):
    return api.api_logout(request)


# =============================================================================
# Bookmark Routes
# =============================================================================

@rt("/bookmarks", methods=["GET"])
def bookmarks_list(request):
    return api.api_bookmarks_list(request, get_service(), request.query_params)


@rt("/bookmarks", methods=["POST"])
async def bookmarks_create(request):
    data = await parse_json_body(request)
    return await run_in_threadpool(call_api, api.api_bookmarks_create, request, data)


@rt("/bookmarks/{bookmark_id}", methods=["GET"])
def bookmark_get(request, bookmark_id: str):
    return api.api_bookmark_get(request, get_service(), bookmark_id)


@rt("/bookmarks/{bookmark_id}", methods=["PUT"])
async def bookmark_update(request, bookmark_id: str):
    data = await parse_json_body(request)
    return await run_in_threadpool(call_api, api.api_bookmark_update, request, bookmark_id, data)


@rt("/bookmarks/{bookmark_id}", methods=["DELETE"])
def bookmark_delete(request, bookmark_id: str):
    return api.api_bookmark_delete(request, get_service(), bookmark_id)


@rt("/admin/bookmarks", methods=["GET"])
def admin_bookmarks_list(request):
    return api.api_admin_bookmarks_list(request, get_service(), request.query_params)


# =============================================================================
# Tag and Category Routes
# =============================================================================

@rt("/tags", methods=["GET"])
def tags_list(request):
    return api.api_tags_list(request, get_service())


@rt("/tags", methods=["POST"])
async def tags_add(request):
    data = await parse_json_body(request)
    return await run_in_threadpool(call_api, api.api_tags_add, request, data)


@rt("/tags", methods=["DELETE"])
def tags_delete(request):
    return api.api_tags_delete(request, get_service(), request.query_params.get("tag"))


@rt("/categories", methods=["GET"])
def categories_list(request):
    return api.api_categories_list(request, get_service())


@rt("/fetch-cover", methods=["GET"])
async def fetch_cover(request):
    return await api.api_fetch_cover(request, request.query_params.get("url"))


# =============================================================================
# Run Server
# =============================================================================

def main():
    """Run the development server."""
    import uvicorn

    setup_logging(config.LOG_LEVEL)

    # Fail at startup, not on the first request, if the store is misconfigured
    get_service()
    logger.info(f"Using {config.STORE_BACKEND} store")

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    main()
