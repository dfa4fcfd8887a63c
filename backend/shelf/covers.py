"""Best-effort cover image lookup.

Fetches a page and pulls the preview image from its meta tags, trying
``og:image`` first and ``twitter:image`` as a fallback. Every failure
(timeout, network error, non-2xx status, no match) yields an empty string so
a missing cover never blocks saving a bookmark.
"""

import asyncio
import html
import logging
import re
from urllib.parse import urljoin, urlparse

import httpx

from . import config

logger = logging.getLogger(__name__)

# Attribute order varies between sites, so each tag is matched both ways
COVER_PATTERNS = [
    re.compile(r"""<meta[^>]+property=["']og:image["'][^>]+content=["']([^"']+)["']""", re.IGNORECASE),
    re.compile(r"""<meta[^>]+content=["']([^"']+)["'][^>]+property=["']og:image["']""", re.IGNORECASE),
    re.compile(r"""<meta[^>]+name=["']twitter:image["'][^>]+content=["']([^"']+)["']""", re.IGNORECASE),
    re.compile(r"""<meta[^>]+content=["']([^"']+)["'][^>]+name=["']twitter:image["']""", re.IGNORECASE),
]

USER_AGENT = "Mozilla/5.0 (compatible; Shelf/1.0; +https://github.com/shelf)"


def is_http_url(url: str) -> bool:
    """Check that a URL is absolute with an http(s) scheme and a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def parse_cover_from_html(page: str, base_url: str = "") -> str:
    """Extract the cover image URL from page HTML, or "" if absent."""
    for pattern in COVER_PATTERNS:
        match = pattern.search(page)
        if match:
            cover = html.unescape(match.group(1).strip())
            return urljoin(base_url, cover) if base_url else cover
    return ""


async def _get(url: str, timeout: float, transport) -> httpx.Response:
    async with httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    ) as client:
        return await client.get(url)


async def fetch_cover(
    url: str,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Fetch ``url`` and return its cover image URL, or "" on any failure.

    ``timeout`` bounds the whole exchange, redirects and body included.
    """
    if not is_http_url(url):
        return ""
    if timeout is None:
        timeout = config.COVER_FETCH_TIMEOUT

    try:
        response = await asyncio.wait_for(_get(url, timeout, transport), timeout)
    except asyncio.TimeoutError:
        logger.debug(f"Cover fetch for {url} timed out after {timeout}s")
        return ""
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        logger.debug(f"Cover fetch failed for {url}: {e}")
        return ""

    if not response.is_success:
        logger.debug(f"Cover fetch for {url} returned HTTP {response.status_code}")
        return ""

    return parse_cover_from_html(response.text, str(response.url))
