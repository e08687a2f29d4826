"""SSRF guard for outbound requests.

Every URL FeedFinder is about to contact goes through
:func:`validate_target_url` first, redirect hops and probed feed paths
included.  The check is purely lexical: the hostname
written in the URL is inspected, DNS is never consulted.

Rules, first failure wins:

1. the string must parse as an absolute URL;
2. scheme must be ``http`` or ``https``;
3. ``localhost``, ``127.*``, ``0.*``, IPv6 loopback and ``::`` are refused;
4. ``10/8``, ``172.16/12``, ``192.168/16``, ``169.254/16`` and ``fc00::/7`` are
   refused;
5. an explicit port must be one of ``ALLOWED_PORTS``.

Hosts written as a number (``2130706433``, ``0x7f.1``) are rewritten to the
dotted quad they denote before the rules run, because that is the address a
resolver would connect to.
"""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from feedfinder.main.config import ALLOWED_PORTS
from feedfinder.main.errors import (
    Err,
    Ok,
    Result,
    ValidationError,
    invalid_url_format,
    not_permitted,
)

WEB_SCHEMES = ("http", "https")
_DEFAULT_PORTS = {"http": 80, "https": 443}

# Characters that may never appear in a host name.
_FORBIDDEN_HOST_CHARS = frozenset(" \t\n\r#%/:<>?@[\\]^|")

_PRIVATE_RANGES = [
    re.compile(r"^10\."),  # 10.0.0.0/8
    re.compile(r"^172\.(1[6-9]|2[0-9]|3[0-1])\."),  # 172.16.0.0/12
    re.compile(r"^192\.168\."),  # 192.168.0.0/16
    re.compile(r"^169\.254\."),  # 169.254.0.0/16, cloud metadata
]
_UNIQUE_LOCAL = ipaddress.ip_network("fc00::/7")
# "This host" addresses; connecting to them reaches the local machine.
_THIS_HOST = ipaddress.ip_network("0.0.0.0/8")

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_OCT_DIGITS = frozenset("01234567")


@dataclass(frozen=True)
class TargetURL:
    """A URL that passed :func:`validate_target_url`.

    Only the validator constructs these; holding one means the address may be
    contacted.
    """

    scheme: str
    hostname: str
    port: Optional[int]
    path: str
    query: str = ""
    fragment: str = ""
    userinfo: str = ""

    @property
    def effective_port(self) -> int:
        return self.port if self.port is not None else _DEFAULT_PORTS[self.scheme]

    @property
    def netloc(self) -> str:
        host = f"[{self.hostname}]" if ":" in self.hostname else self.hostname
        if self.port is not None and self.port != _DEFAULT_PORTS[self.scheme]:
            host = f"{host}:{self.port}"
        if self.userinfo:
            host = f"{self.userinfo}@{host}"
        return host

    @property
    def href(self) -> str:
        return urlunsplit(
            (self.scheme, self.netloc, self.path or "/", self.query, self.fragment)
        )

    def __str__(self) -> str:
        return self.href


def _parse_ipv4_number(part: str) -> Optional[int]:
    if part == "":
        return None
    digits, radix, allowed = part, 10, None
    if part[:2] in ("0x", "0X"):
        digits, radix, allowed = part[2:], 16, _HEX_DIGITS
    elif len(part) > 1 and part[0] == "0":
        digits, radix, allowed = part[1:], 8, _OCT_DIGITS
    if digits == "":
        return 0
    if allowed is None:
        if not digits.isascii() or not digits.isdigit():
            return None
    elif not set(digits) <= allowed:
        return None
    return int(digits, radix)


def _ends_in_number(host: str) -> bool:
    parts = host.split(".")
    if parts[-1] == "" and len(parts) > 1:
        parts = parts[:-1]
    last = parts[-1]
    if last and last.isascii() and last.isdigit():
        return True
    return last[:2] in ("0x", "0X") and set(last[2:]) <= _HEX_DIGITS


def _canonical_ipv4(host: str) -> Result[str, ValidationError]:
    """Rewrite numeric host forms to a dotted quad; other hosts pass through."""
    if not _ends_in_number(host):
        return Ok(host)
    parts = host.split(".")
    if parts[-1] == "" and len(parts) > 1:
        parts = parts[:-1]
    if len(parts) > 4:
        return Err(invalid_url_format())
    numbers = []
    for part in parts:
        number = _parse_ipv4_number(part)
        if number is None:
            return Err(invalid_url_format())
        numbers.append(number)
    if any(n > 255 for n in numbers[:-1]):
        return Err(invalid_url_format())
    if numbers[-1] >= 256 ** (5 - len(numbers)):
        return Err(invalid_url_format())
    value = numbers[-1]
    for index, number in enumerate(numbers[:-1]):
        value += number * 256 ** (3 - index)
    return Ok(str(ipaddress.IPv4Address(value)))


def _canonical_host(parts: SplitResult) -> Result[str, ValidationError]:
    hostname = parts.hostname
    if not hostname:
        return Err(invalid_url_format())
    if "[" in parts.netloc:
        if "%" in hostname:
            return Err(invalid_url_format())
        try:
            return Ok(ipaddress.IPv6Address(hostname).compressed)
        except ValueError:
            return Err(invalid_url_format())
    if not hostname.isascii():
        try:
            hostname = hostname.encode("idna").decode("ascii").lower()
        except UnicodeError:
            return Err(invalid_url_format())
    if any(ch in _FORBIDDEN_HOST_CHARS or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in hostname):
        return Err(invalid_url_format())
    return _canonical_ipv4(hostname)


def _split(url: str) -> Result[Tuple[SplitResult, Optional[str]], ValidationError]:
    """Parse *url* as an absolute URL.

    Returns the split result and, for http/https, the canonical hostname.
    """
    if not isinstance(url, str) or not url.strip():
        return Err(invalid_url_format())
    try:
        parts = urlsplit(url.strip())
        parts.port  # raises ValueError when malformed or out of range
    except ValueError:
        return Err(invalid_url_format())
    if not parts.scheme:
        return Err(invalid_url_format())
    if parts.scheme.lower() not in WEB_SCHEMES:
        return Ok((parts, None))
    return _canonical_host(parts).map(lambda host: (parts, host))


def _userinfo(parts: SplitResult) -> str:
    return parts.netloc.rpartition("@")[0] if "@" in parts.netloc else ""


def parse_absolute_url(url: str) -> Result[str, ValidationError]:
    """Return *url* in canonical form if it parses as an absolute URL.

    Only http/https URLs are rewritten (lowercased scheme and host, canonical
    IP literals, ``/`` for an empty path); other schemes are returned as given.
    """

    def _render(split: Tuple[SplitResult, Optional[str]]) -> str:
        parts, host = split
        if host is None:
            return parts.geturl()
        return _build(parts, host).href

    return _split(url).map(_render)


def resolve_url(reference: str, base: str) -> Result[str, ValidationError]:
    """Resolve *reference* against *base* and return the absolute URL."""
    try:
        joined = urljoin(base, reference.strip())
    except ValueError:
        return Err(invalid_url_format())
    return parse_absolute_url(joined)


def _build(parts: SplitResult, host: str) -> TargetURL:
    return TargetURL(
        scheme=parts.scheme.lower(),
        hostname=host,
        port=parts.port,
        path=parts.path,
        query=parts.query,
        fragment=parts.fragment,
        userinfo=_userinfo(parts),
    )


def _ip_literal(host: str):
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        return address.ipv4_mapped
    return address


def _is_local_address(address) -> bool:
    if address is None:
        return False
    if address.is_loopback or address.is_unspecified:
        return True
    return address.version == 4 and address in _THIS_HOST


def _check_host(host: str) -> Optional[ValidationError]:
    if host.endswith("."):
        host = host[:-1]
    address = _ip_literal(host)
    if address is not None and address.version == 4:
        host = str(address)

    if host == "localhost" or host.startswith("127.") or _is_local_address(address):
        return not_permitted("Access to localhost is not permitted")

    if any(pattern.match(host) for pattern in _PRIVATE_RANGES) or (
        address is not None and address.version == 6 and address in _UNIQUE_LOCAL
    ):
        return not_permitted("Access to private IP addresses is not permitted")
    return None


def validate_target_url(url: str) -> Result[TargetURL, ValidationError]:
    """Decide whether *url* may be fetched.

    Deterministic and free of I/O.  Error messages name the rule that failed,
    never the rejected host or path.
    """
    split = _split(url)
    if not split.is_ok():
        return split
    parts, host = split.value

    if host is None:
        return Err(not_permitted("Only HTTP/HTTPS protocols are supported"))

    refused = _check_host(host.lower())
    if refused is not None:
        return Err(refused)

    if parts.port is not None and parts.port not in ALLOWED_PORTS:
        return Err(not_permitted("Access to this port is not permitted"))

    return Ok(_build(parts, host.lower()))
