"""Configuration for FeedFinder.

Values are read from the environment once, at import time.  A ``.env`` file in
the working directory is loaded first (via ``python-dotenv``) so local
development does not need exported variables.  Anything that is not meant to
be tuned per deployment (feed MIME types, probe paths, port allow-list) is
plain module data.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


# Network
USER_AGENT = os.getenv("FEEDFINDER_USER_AGENT", "FeedFinder/1.0")
FETCH_TIMEOUT_MS = _env_int("FEEDFINDER_FETCH_TIMEOUT_MS", 5000)
MAX_REDIRECTS = _env_int("FEEDFINDER_MAX_REDIRECTS", 5)
# 0 disables the aggregate deadline; each request still has FETCH_TIMEOUT_MS.
DISCOVERY_DEADLINE_MS = _env_int("FEEDFINDER_DISCOVERY_DEADLINE_MS", 0)

ALLOWED_PORTS = frozenset({80, 443, 8080, 8443})

# Feed detection
DEFAULT_FEED_TITLE = "RSS/Atom feed"

# Generic XML types (text/xml, application/xml) are reported as RSS.
SUPPORTED_FEED_TYPES = (
    "application/rss+xml",
    "application/atom+xml",
    "application/rdf+xml",  # RSS 1.0
    "text/xml",
    "application/xml",
)

# Upper bound on the text between ``<link`` and ``>`` in the fallback scanner.
MAX_LINK_TAG_LENGTH = 1000

# Resolved against the site root.
ROOT_FEED_PATHS = (
    "/feed",
    "/feeds",
    "/rss",
    "/rss.xml",
    "/feed.xml",
    "/atom.xml",
    "/index.xml",
)

# Resolved against the path of the submitted URL, so feeds living under a
# subdirectory (``/blog/feed/``) are found too.
RELATIVE_FEED_PATHS = (
    "feed/",
    "feeds/",
    "rss/",
    "feed.xml",
    "rss.xml",
    "atom.xml",
    "index.xml",
)

# HTTP server
_DEFAULT_ORIGINS = ",".join(
    [
        "http://localhost:5173",
        "http://localhost:3000",
        "https://feedfinder.programarch.com",
        "https://feedfinder.takuan-osho.com",
        "https://feedfinder.takuan-osho.net",
    ]
)
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("FEEDFINDER_ALLOWED_ORIGINS", _DEFAULT_ORIGINS).split(",")
    if origin.strip()
]

HOST = os.getenv("FEEDFINDER_HOST", "127.0.0.1")
PORT = _env_int("FEEDFINDER_PORT", 8090)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
