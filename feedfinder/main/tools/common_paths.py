"""Probe conventional feed locations on a site.

Many sites serve a feed at a well-known path without advertising it in their
HTML.  ``try_common_paths`` resolves every entry of ``ROOT_FEED_PATHS`` (from
the site root) and ``RELATIVE_FEED_PATHS`` (from the submitted page's path),
drops any candidate the SSRF guard refuses, and sends a ``HEAD`` request to
all survivors at once.  A candidate counts as a feed when it answers 2xx with
a feed-like ``Content-Type``.

Individual failures (timeouts, refused connections, 404s) simply yield no
result for that path.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Optional, Tuple

import httpx

from feedfinder.main.config import RELATIVE_FEED_PATHS, ROOT_FEED_PATHS
from feedfinder.main.errors import DiscoveryError, Ok, Result
from feedfinder.main.models import DiscoveryMethod, FeedResult, FeedType
from feedfinder.main.tools.fetcher import safe_fetch
from feedfinder.main.tools.url_guard import TargetURL, resolve_url, validate_target_url

logger = logging.getLogger(__name__)

COMMON_PATHS = ROOT_FEED_PATHS + RELATIVE_FEED_PATHS

_FEED_CONTENT_TYPE = re.compile(r"^(application/(rss|atom|rdf)\+xml|text/xml|application/xml)")


def is_feed_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and _FEED_CONTENT_TYPE.match(content_type.lower()) is not None


def build_candidates(base_url: str) -> List[Tuple[str, TargetURL]]:
    """Return ``(path, target)`` pairs worth probing for *base_url*.

    Candidates that fail to resolve or are refused by the SSRF guard are
    dropped, as are paths resolving to a URL already in the list.
    """
    candidates: List[Tuple[str, TargetURL]] = []
    seen: set[str] = set()
    for path in COMMON_PATHS:
        target = resolve_url(path, base_url).and_then(validate_target_url)
        if not target.is_ok():
            logger.debug("Dropping candidate %s: %s", path, target.error.message)
            continue
        if target.value.href in seen:
            continue
        seen.add(target.value.href)
        candidates.append((path, target.value))
    return candidates


async def _probe(
    path: str, target: TargetURL, client: Optional[httpx.AsyncClient]
) -> Optional[FeedResult]:
    result = await safe_fetch(target, method="HEAD", client=client)
    if not result.is_ok():
        logger.debug("No feed at %s (%s)", target.href, result.error.code.value)
        return None

    content_type = result.value.headers.get("content-type", "")
    if not is_feed_content_type(content_type):
        logger.debug("Not a feed content type at %s: %r", target.href, content_type)
        return None

    logger.info("Found feed via common path: %s", target.href)
    return FeedResult(
        url=target.href,
        title=f"{path} feed",
        type=FeedType.from_mime(content_type),
        discovery_method=DiscoveryMethod.COMMON_PATH,
    )


async def try_common_paths(
    base_url: str, client: Optional[httpx.AsyncClient] = None
) -> Result[List[FeedResult], DiscoveryError]:
    """Probe every common feed path of *base_url* concurrently.

    Always returns ``Ok``; the list holds one entry per path that answered as a
    feed, in candidate order.
    """
    candidates = build_candidates(base_url)
    results = await asyncio.gather(*(_probe(path, target, client) for path, target in candidates))
    return Ok([feed for feed in results if feed is not None])
