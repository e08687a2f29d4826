"""Bounded outbound HTTP for feed discovery.

The module provides ``safe_fetch``, the only function in FeedFinder that talks
to the network.  Each call:

* sends the fixed ``User-Agent`` (caller headers are merged on top);
* gives up after ``FETCH_TIMEOUT_MS`` and reports ``TIMEOUT_ERROR``;
* follows redirects itself, passing every ``Location`` through the SSRF guard
  before the next hop is requested;
* never raises – transport failures become ``NETWORK_ERROR`` and non-2xx
  responses ``FETCH_FAILED`` carrying the status code.

Nothing is retried here; callers decide whether a failure matters.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

import httpx

from feedfinder.main.config import FETCH_TIMEOUT_MS, MAX_REDIRECTS, USER_AGENT
from feedfinder.main.errors import DiscoveryError, Err, ErrorCode, Ok, Result
from feedfinder.main.tools.url_guard import TargetURL, resolve_url, validate_target_url

logger = logging.getLogger(__name__)

# Reusable async HTTP client for every outbound request
_http_client: httpx.AsyncClient | None = None


async def _get_http_client() -> httpx.AsyncClient:
    """Get or create the shared async HTTP client."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(follow_redirects=False)
    return _http_client


async def close_http_client() -> None:
    """Close the shared client; a new one is created on next use."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def _timeout_error(url: TargetURL) -> DiscoveryError:
    return DiscoveryError(ErrorCode.TIMEOUT_ERROR, f"Request timeout for {url.href}")


async def _send(
    client: httpx.AsyncClient,
    method: str,
    target: TargetURL,
    headers: dict[str, str],
    timeout: float,
) -> Result[httpx.Response, DiscoveryError]:
    current = target
    for _ in range(MAX_REDIRECTS + 1):
        logger.debug("%s %s", method, current.href)
        response = await client.request(
            method,
            current.href,
            headers=headers,
            timeout=timeout,
            follow_redirects=False,
        )
        if not response.has_redirect_location:
            return Ok(response)

        location = resolve_url(response.headers["location"], current.href)
        hop = location.and_then(validate_target_url)
        if not hop.is_ok():
            logger.warning("Refusing redirect from %s: %s", current.href, hop.error.message)
            return Err(
                DiscoveryError(
                    ErrorCode.FETCH_FAILED,
                    "Redirect target not permitted",
                    status=response.status_code,
                )
            )
        current = hop.value

    return Err(
        DiscoveryError(ErrorCode.FETCH_FAILED, "Too many redirects", status=response.status_code)
    )


async def safe_fetch(
    url: TargetURL,
    *,
    method: str = "GET",
    headers: Optional[Mapping[str, str]] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout_ms: Optional[int] = None,
) -> Result[httpx.Response, DiscoveryError]:
    """Perform one bounded request to an already validated *url*.

    Parameters
    ----------
    url:
        Target returned by ``validate_target_url``.
    method:
        ``GET`` for page bodies, ``HEAD`` for existence checks.
    headers:
        Extra request headers, applied after the ``User-Agent``.
    client:
        ``httpx.AsyncClient`` to use; the shared module client by default.
    timeout_ms:
        Overrides ``FETCH_TIMEOUT_MS`` for this call.
    """
    merged: dict[str, str] = {"User-Agent": USER_AGENT}
    if headers:
        merged.update(headers)
    timeout = (timeout_ms if timeout_ms is not None else FETCH_TIMEOUT_MS) / 1000
    if client is None:
        client = await _get_http_client()

    try:
        # httpx timeouts apply per phase; wait_for caps the whole exchange.
        result = await asyncio.wait_for(_send(client, method, url, merged, timeout), timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.info("Timed out fetching %s", url.href)
        return Err(_timeout_error(url))
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.info("Network error fetching %s: %s", url.href, exc)
        return Err(DiscoveryError(ErrorCode.NETWORK_ERROR, f"Network error: {exc}"))

    if not result.is_ok():
        return result

    response = result.value
    if not response.is_success:
        logger.info("HTTP %s from %s", response.status_code, url.href)
        return Err(
            DiscoveryError(
                ErrorCode.FETCH_FAILED,
                f"HTTP {response.status_code}",
                status=response.status_code,
            )
        )
    return Ok(response)


def read_text(response: httpx.Response) -> Result[str, DiscoveryError]:
    """Decode the body of *response*."""
    try:
        return Ok(response.text)
    except (UnicodeDecodeError, LookupError, httpx.HTTPError) as exc:
        logger.warning("Could not decode body from %s: %s", response.url, exc)
        return Err(DiscoveryError(ErrorCode.PARSING_ERROR, "Failed to parse response body"))
