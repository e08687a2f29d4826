"""Input handling for the search endpoint.

``parse_request_body`` pulls the ``url`` field out of a decoded JSON body and
``normalize_url`` turns loose user input (``example.com``) into an absolute
URL string.  Neither function touches the network; whether the URL may be
fetched is decided later by :mod:`feedfinder.main.tools.url_guard`.
"""

from __future__ import annotations

from typing import Any

from feedfinder.main.errors import (
    Err,
    ErrorCode,
    Ok,
    Result,
    ValidationError,
    invalid_url_format,
)
from feedfinder.main.tools.url_guard import parse_absolute_url


def parse_request_body(body: Any) -> Result[str, ValidationError]:
    """Return the ``url`` field of *body*.

    *body* is whatever the JSON decoder produced; anything but an object is
    refused.
    """
    if not isinstance(body, dict):
        return Err(ValidationError(ErrorCode.INVALID_REQUEST_BODY, "Invalid request body"))

    target_url = body.get("url")
    if not target_url or not isinstance(target_url, str) or not target_url.strip():
        return Err(ValidationError(ErrorCode.MISSING_URL, "URL is required"))

    return Ok(target_url)


def _has_web_scheme(url: str) -> bool:
    return url[:7].lower() == "http://" or url[:8].lower() == "https://"


def normalize_url(url: str) -> Result[str, ValidationError]:
    """Add ``https://`` to *url* unless it already starts with ``http``.

    Inputs with a non-web scheme (``ftp://``), a truncated scheme (``http:/``)
    or nothing after ``://`` are refused before any prefixing happens.
    Already-normalised input is returned unchanged.
    """
    if not isinstance(url, str) or not url.strip():
        return Err(invalid_url_format())

    url = url.strip()
    lowered = url.lower()
    if "://" in url and not _has_web_scheme(url):
        return Err(invalid_url_format())
    if lowered in ("http:/", "https:/") or url.endswith("://"):
        return Err(invalid_url_format())

    normalized = url if lowered.startswith("http") else f"https://{url}"
    return parse_absolute_url(normalized).map(lambda _: normalized)
