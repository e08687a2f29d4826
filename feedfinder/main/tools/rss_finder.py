"""Find RSS/Atom autodiscovery links in an HTML page.

The extractor follows a two-step strategy:

1. Parse the page with ``BeautifulSoup`` and inspect every ``<link>`` element.
   A link is a feed when its ``rel`` contains ``alternate``, its ``type`` (minus
   any ``;charset=...`` parameters) is one of ``SUPPORTED_FEED_TYPES`` and it has
   an ``href``.  The ``href`` is resolved against the page URL.
2. If the parser raises, fall back to a plain string scan: the page is split on
   ``<link`` and each piece is examined only up to ``MAX_LINK_TAG_LENGTH``
   characters.  Attribute values are read with ``extract_attribute_value``, a
   single forward pass with no regular expressions, so hostile markup cannot
   make the scan super-linear.

Links whose ``href`` cannot be resolved are skipped.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup

from feedfinder.main.config import DEFAULT_FEED_TITLE, MAX_LINK_TAG_LENGTH, SUPPORTED_FEED_TYPES
from feedfinder.main.models import DiscoveryMethod, FeedResult, FeedType
from feedfinder.main.tools.url_guard import resolve_url

logger = logging.getLogger(__name__)

_LINK_SPLIT = re.compile(r"<link", re.IGNORECASE)
_INLINE_SPACE = (" ", "\t")
# Characters that may precede an attribute name inside a tag.
_ATTR_BOUNDARY = frozenset(" \t\n\r\f\"'/")


def _base_mime(type_attr: str) -> str:
    return type_attr.lower().split(";")[0].strip()


def _is_alternate(rel) -> bool:
    if not rel:
        return False
    tokens = rel if isinstance(rel, list) else str(rel).split()
    return any(token.lower() == "alternate" for token in tokens)


def _attribute_start(lower_tag: str, name: str) -> int:
    """Index of the first occurrence of *name* used as an attribute name, or -1."""
    index = lower_tag.find(name)
    while index != -1:
        end = index + len(name)
        before_ok = index == 0 or lower_tag[index - 1] in _ATTR_BOUNDARY
        after_ok = end == len(lower_tag) or lower_tag[end] in (" ", "\t", "=")
        if before_ok and after_ok:
            return index
        index = lower_tag.find(name, end)
    return -1


def extract_attribute_value(tag: str, attribute_name: str) -> Optional[str]:
    """Return the quoted value of *attribute_name* in *tag*, or ``None``.

    Matching on the name is case-insensitive.  Spaces or tabs may surround the
    ``=``; the value must be enclosed in ``"`` or ``'``.  Runs in time linear
    in ``len(tag)``.
    """
    lower_tag = tag.lower()
    name = attribute_name.lower()
    index = _attribute_start(lower_tag, name)
    if index == -1:
        return None

    position = index + len(name)
    while position < len(tag) and tag[position] in _INLINE_SPACE:
        position += 1
    if position >= len(tag) or tag[position] != "=":
        return None

    position += 1
    while position < len(tag) and tag[position] in _INLINE_SPACE:
        position += 1
    if position >= len(tag):
        return None

    quote = tag[position]
    if quote not in ('"', "'"):
        return None
    value_end = tag.find(quote, position + 1)
    if value_end == -1:
        return None
    return tag[position + 1 : value_end]


def _build_feed(
    rel, type_attr: Optional[str], href: Optional[str], title: Optional[str], base_url: str
) -> Optional[FeedResult]:
    if not _is_alternate(rel) or not type_attr or not href:
        return None
    mime = _base_mime(type_attr)
    if mime not in SUPPORTED_FEED_TYPES:
        return None

    resolved = resolve_url(href, base_url)
    if not resolved.is_ok():
        logger.debug("Skipping feed link with unresolvable href")
        return None

    return FeedResult(
        url=resolved.value,
        title=title or DEFAULT_FEED_TITLE,
        type=FeedType.from_mime(mime),
        discovery_method=DiscoveryMethod.META_TAG,
    )


def _parse_link_section(section: str, base_url: str) -> Optional[FeedResult]:
    end_index = section.find(">", 0, MAX_LINK_TAG_LENGTH + 1)
    if end_index == -1:
        return None

    link_tag = "<link" + section[: end_index + 1]
    return _build_feed(
        extract_attribute_value(link_tag, "rel"),
        extract_attribute_value(link_tag, "type"),
        extract_attribute_value(link_tag, "href"),
        extract_attribute_value(link_tag, "title"),
        base_url,
    )


def _unique(feeds: Iterable[Optional[FeedResult]]) -> List[FeedResult]:
    seen: set[str] = set()
    unique: List[FeedResult] = []
    for feed in feeds:
        if feed is not None and feed.url not in seen:
            seen.add(feed.url)
            unique.append(feed)
    return unique


def find_meta_feeds_with_string_parsing(html: str, base_url: str) -> List[FeedResult]:
    """Scan *html* for feed ``<link>`` tags without an HTML parser.

    Sections whose tag does not close within ``MAX_LINK_TAG_LENGTH`` characters
    are ignored.  Results are deduplicated by URL.
    """
    sections = _LINK_SPLIT.split(html)
    return _unique(_parse_link_section(section, base_url) for section in sections[1:])


def find_meta_feeds(html: str, base_url: str) -> List[FeedResult]:
    """Return the feeds advertised by ``<link rel="alternate">`` tags in *html*.

    Parameters
    ----------
    html:
        Page markup.
    base_url:
        URL the page was fetched from; relative ``href`` values resolve against it.
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
        links = [
            (link.get("rel"), link.get("type"), link.get("href"), link.get("title"))
            for link in soup.find_all("link")
        ]
    except Exception as exc:
        logger.warning("HTML parser failed (%s); falling back to string scan", exc)
        return find_meta_feeds_with_string_parsing(html, base_url)

    feeds: List[FeedResult] = []
    for rel, type_attr, href, title in links:
        feed = _build_feed(rel, type_attr, href, title, base_url)
        if feed is not None:
            feeds.append(feed)
    return feeds
