"""Error values shared by every FeedFinder component.

Fallible operations do not raise; they return ``Ok(value)`` or ``Err(error)``
and the caller decides what to do with the failure.  Library exceptions are
caught where they originate (URL parsing, HTTP, HTML parsing) and turned into
one of the tagged errors below.

Validation-stage errors (``ValidationError``):

* ``INVALID_REQUEST_BODY`` – body is not a JSON object
* ``MISSING_URL`` – no usable ``url`` field
* ``INVALID_URL_FORMAT`` – the URL does not parse
* ``URL_NOT_PERMITTED`` – scheme, host or port refused by the SSRF guard

Discovery-stage errors (``DiscoveryError``):

* ``FETCH_FAILED`` – non-2xx response (``status`` set) or refused target
* ``NETWORK_ERROR`` – transport failure
* ``TIMEOUT_ERROR`` – request ran past its deadline
* ``PARSING_ERROR`` – response body could not be decoded
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


class ErrorCode(str, Enum):
    INVALID_REQUEST_BODY = "INVALID_REQUEST_BODY"
    MISSING_URL = "MISSING_URL"
    INVALID_URL_FORMAT = "INVALID_URL_FORMAT"
    URL_NOT_PERMITTED = "URL_NOT_PERMITTED"
    FETCH_FAILED = "FETCH_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    PARSING_ERROR = "PARSING_ERROR"


VALIDATION_CODES = frozenset(
    {
        ErrorCode.INVALID_REQUEST_BODY,
        ErrorCode.MISSING_URL,
        ErrorCode.INVALID_URL_FORMAT,
        ErrorCode.URL_NOT_PERMITTED,
    }
)


@dataclass(frozen=True)
class ValidationError:
    code: ErrorCode
    message: str


@dataclass(frozen=True)
class DiscoveryError:
    code: ErrorCode
    message: str
    status: Optional[int] = None


AppError = Union[ValidationError, DiscoveryError]


def invalid_url_format() -> ValidationError:
    return ValidationError(ErrorCode.INVALID_URL_FORMAT, "Invalid URL format")


def not_permitted(message: str) -> ValidationError:
    return ValidationError(ErrorCode.URL_NOT_PERMITTED, message)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying ``value``."""

    value: T

    def is_ok(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        return Ok(fn(self.value))

    def map_err(self, fn: Callable) -> "Ok[T]":
        return self

    def and_then(self, fn: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        return fn(self.value)


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying a tagged ``error``."""

    error: E

    def is_ok(self) -> bool:
        return False

    def map(self, fn: Callable) -> "Err[E]":
        return self

    def map_err(self, fn: Callable[[E], F]) -> "Err[F]":
        return Err(fn(self.error))

    def and_then(self, fn: Callable) -> "Err[E]":
        return self


Result = Union[Ok[T], Err[E]]
