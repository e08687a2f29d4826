"""Turn discovery outcomes into JSON payloads.

Clients only ever see a generic message per error category plus an opaque
``errorId``; the real error, with whatever URL or library text it carries, is
logged under the same id.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Tuple

from feedfinder.main.errors import VALIDATION_CODES, AppError, ErrorCode
from feedfinder.main.models import FeedResult

logger = logging.getLogger(__name__)

INVALID_REQUEST_MESSAGE = "Invalid request. Please check your input and try again."
UNREACHABLE_MESSAGE = "Unable to access the requested URL. Please try again later."
UNPARSEABLE_MESSAGE = "Unable to analyze the website content. Please try a different URL."
UNEXPECTED_MESSAGE = "An unexpected error occurred. Please try again later."


def user_message(error: AppError) -> str:
    if error.code in VALIDATION_CODES:
        return INVALID_REQUEST_MESSAGE
    if error.code in (ErrorCode.FETCH_FAILED, ErrorCode.NETWORK_ERROR, ErrorCode.TIMEOUT_ERROR):
        return UNREACHABLE_MESSAGE
    if error.code == ErrorCode.PARSING_ERROR:
        return UNPARSEABLE_MESSAGE
    return UNEXPECTED_MESSAGE


def status_code(error: AppError) -> int:
    if error.code in VALIDATION_CODES:
        return 400
    if error.code == ErrorCode.TIMEOUT_ERROR:
        return 408
    if error.code == ErrorCode.FETCH_FAILED:
        return 404 if getattr(error, "status", None) == 404 else 502
    return 500


def new_error_id() -> str:
    return uuid.uuid4().hex[:12]


def error_payload(error: AppError) -> Tuple[int, Dict[str, Any]]:
    """Return ``(status, body)`` for *error* and log its details."""
    error_id = new_error_id()
    logger.error("[%s] Error type: %s, Details: %s", error_id, error.code.value, error.message)
    return status_code(error), {
        "success": False,
        "error": user_message(error),
        "errorId": error_id,
    }


def success_payload(searched_url: str, feeds: List[FeedResult]) -> Dict[str, Any]:
    return {
        "success": True,
        "searchedUrl": searched_url,
        "totalFound": len(feeds),
        "feeds": [feed.to_dict() for feed in feeds],
    }
