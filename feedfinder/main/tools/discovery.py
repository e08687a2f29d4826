"""Discover the feeds of a site by combining every strategy.

``discover_feeds`` validates the target, then runs two branches side by side:

(a) fetch the page and extract ``<link rel="alternate">`` feeds from it;
(b) probe the conventional feed paths.

Results are merged with autodiscovered feeds first and deduplicated by URL, so
a feed found both ways is reported once, as ``meta-tag``.  When branch (a)
fails but branch (b) found something, the probe results are returned on their
own; otherwise branch (a)'s error is the outcome.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional

import httpx

from feedfinder.main.config import DISCOVERY_DEADLINE_MS
from feedfinder.main.errors import DiscoveryError, Err, ErrorCode, Ok, Result
from feedfinder.main.models import FeedResult
from feedfinder.main.tools.common_paths import try_common_paths
from feedfinder.main.tools.fetcher import read_text, safe_fetch
from feedfinder.main.tools.rss_finder import find_meta_feeds
from feedfinder.main.tools.url_guard import TargetURL, validate_target_url

logger = logging.getLogger(__name__)


def merge_feeds(*groups: Iterable[FeedResult]) -> List[FeedResult]:
    """Concatenate *groups* in order, keeping the first feed seen per URL."""
    seen: set[str] = set()
    merged: List[FeedResult] = []
    for group in groups:
        for feed in group:
            if feed.url not in seen:
                seen.add(feed.url)
                merged.append(feed)
    return merged


async def _meta_feeds(
    target: TargetURL, client: Optional[httpx.AsyncClient]
) -> Result[List[FeedResult], DiscoveryError]:
    response = await safe_fetch(target, client=client)
    return response.and_then(read_text).map(lambda html: find_meta_feeds(html, target.href))


async def _run_branches(
    target: TargetURL, client: Optional[httpx.AsyncClient]
) -> Result[List[FeedResult], DiscoveryError]:
    meta, common = await asyncio.gather(
        _meta_feeds(target, client),
        try_common_paths(target.href, client=client),
    )

    if meta.is_ok() and common.is_ok():
        feeds = merge_feeds(meta.value, common.value)
        logger.info(
            "Discovered %d feeds for %s (%d meta-tag, %d common-path)",
            len(feeds),
            target.href,
            len(meta.value),
            len(common.value),
        )
        return Ok(feeds)

    if common.is_ok() and common.value:
        logger.warning(
            "Page fetch failed for %s (%s); using %d common-path feeds",
            target.href,
            meta.error.message,
            len(common.value),
        )
        return Ok(list(common.value))

    if not meta.is_ok():
        return meta
    # Only the probe branch failed; keep what the page advertised.
    return Ok(list(meta.value))


async def discover_feeds(
    target_url: str, client: Optional[httpx.AsyncClient] = None
) -> Result[List[FeedResult], DiscoveryError]:
    """Find the RSS/Atom feeds of *target_url*.

    A URL refused by the SSRF guard is reported as ``FETCH_FAILED`` carrying
    the guard's message.  Each outbound request is made at most once.
    """
    validated = validate_target_url(target_url)
    if not validated.is_ok():
        return Err(DiscoveryError(ErrorCode.FETCH_FAILED, validated.error.message))
    target = validated.value

    if DISCOVERY_DEADLINE_MS <= 0:
        return await _run_branches(target, client)
    try:
        return await asyncio.wait_for(_run_branches(target, client), DISCOVERY_DEADLINE_MS / 1000)
    except asyncio.TimeoutError:
        logger.info("Discovery deadline exceeded for %s", target.href)
        return Err(
            DiscoveryError(ErrorCode.TIMEOUT_ERROR, f"Discovery timeout for {target.href}")
        )
