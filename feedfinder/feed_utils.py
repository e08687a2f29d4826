"""Shared search workflow for FeedFinder.

Both the FastAPI HTTP server (``feedfinder/app_server.py``) and the FastMCP
tool server (``feedfinder/server.py``) turn a user-supplied URL into a list of
feeds the same way: normalise, run the SSRF guard, discover.  This module holds
that pipeline so the two servers stay in step.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import httpx

from feedfinder.main.errors import AppError, Result
from feedfinder.main.responses import error_payload, success_payload
from feedfinder.main.tools.discovery import discover_feeds
from feedfinder.main.tools.request import normalize_url
from feedfinder.main.tools.url_guard import validate_target_url


async def search_feeds(
    raw_url: str, client: Optional[httpx.AsyncClient] = None
) -> Result[Dict[str, Any], AppError]:
    """Discover feeds for *raw_url* and build the success payload.

    Input that fails normalisation or the SSRF guard is rejected before any
    request is made.
    """
    target = normalize_url(raw_url).and_then(validate_target_url)
    if not target.is_ok():
        return target

    searched_url = target.value.href
    discovered = await discover_feeds(searched_url, client=client)
    return discovered.map(lambda feeds: success_payload(searched_url, feeds))


def render(result: Result[Dict[str, Any], AppError]) -> Tuple[int, Dict[str, Any]]:
    """Return ``(status, body)`` for a search outcome."""
    if result.is_ok():
        return 200, result.value
    return error_payload(result.error)
