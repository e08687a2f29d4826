"""Tests for ``<link rel="alternate">`` feed extraction."""

from unittest import TestCase, mock

from feedfinder.main.models import DiscoveryMethod, FeedResult, FeedType
from feedfinder.main.tools.rss_finder import (
    extract_attribute_value,
    find_meta_feeds,
    find_meta_feeds_with_string_parsing,
)

BASE = "https://example.com"


def page(*links: str) -> str:
    return "<html><head>" + "".join(links) + "</head><body></body></html>"


class TestFindMetaFeeds(TestCase):
    def test_relative_rss_link(self) -> None:
        html = page('<link rel="alternate" type="application/rss+xml" href="/feed.xml" title="RSS Feed">')
        self.assertEqual(
            find_meta_feeds(html, BASE),
            [
                FeedResult(
                    url="https://example.com/feed.xml",
                    title="RSS Feed",
                    type=FeedType.RSS,
                    discovery_method=DiscoveryMethod.META_TAG,
                )
            ],
        )

    def test_atom_type_is_case_insensitive(self) -> None:
        html = page('<link rel="alternate" type="APPLICATION/ATOM+XML" href="/atom.xml" title="Atom">')
        feeds = find_meta_feeds(html, BASE)
        self.assertEqual(len(feeds), 1)
        self.assertEqual(feeds[0].type, FeedType.ATOM)

    def test_ignores_mime_parameters(self) -> None:
        html = page('<link rel="alternate" type="application/rss+xml; charset=utf-8" href="/rss">')
        feeds = find_meta_feeds(html, BASE)
        self.assertEqual([feed.url for feed in feeds], ["https://example.com/rss"])

    def test_rel_with_several_tokens(self) -> None:
        html = page('<link rel="feed alternate" type="application/atom+xml" href="/a.xml">')
        self.assertEqual(len(find_meta_feeds(html, BASE)), 1)

    def test_rel_is_case_insensitive(self) -> None:
        html = page('<link rel="ALTERNATE" type="application/rss+xml" href="/upper.xml">')
        self.assertEqual([feed.url for feed in find_meta_feeds(html, BASE)], ["https://example.com/upper.xml"])

    def test_generic_xml_types_are_rss(self) -> None:
        html = page(
            '<link rel="alternate" type="text/xml" href="/one.xml">',
            '<link rel="alternate" type="application/rdf+xml" href="/two.rdf">',
        )
        self.assertEqual([feed.type for feed in find_meta_feeds(html, BASE)], [FeedType.RSS, FeedType.RSS])

    def test_skips_non_feed_links(self) -> None:
        html = page(
            '<link rel="stylesheet" type="text/css" href="/style.css">',
            '<link rel="canonical" href="/page">',
            '<link rel="icon" type="application/rss+xml" href="/icon">',
            '<link rel="alternate" type="text/html" href="/fr/">',
            '<link rel="alternate" type="application/json" href="/feed.json">',
            '<link rel="alternate" type="application/rss+xml">',
        )
        self.assertEqual(find_meta_feeds(html, BASE), [])

    def test_default_title(self) -> None:
        html = page('<link rel="alternate" type="application/rss+xml" href="/feed">')
        self.assertEqual(find_meta_feeds(html, BASE)[0].title, "RSS/Atom feed")

    def test_absolute_href_is_kept(self) -> None:
        html = page('<link rel="alternate" type="application/rss+xml" href="https://feeds.example.org/main">')
        self.assertEqual(find_meta_feeds(html, BASE)[0].url, "https://feeds.example.org/main")

    def test_unresolvable_href_is_skipped(self) -> None:
        html = page(
            '<link rel="alternate" type="application/rss+xml" href="http://[invalid">',
            '<link rel="alternate" type="application/rss+xml" href="/good.xml">',
        )
        self.assertEqual([feed.url for feed in find_meta_feeds(html, BASE)], ["https://example.com/good.xml"])

    def test_relative_to_page_path(self) -> None:
        html = page('<link rel="alternate" type="application/rss+xml" href="feed/">')
        feeds = find_meta_feeds(html, "https://backlog.com/ja/blog/")
        self.assertEqual(feeds[0].url, "https://backlog.com/ja/blog/feed/")

    def test_page_without_links(self) -> None:
        self.assertEqual(find_meta_feeds("<html><body><p>hi</p></body></html>", BASE), [])
        self.assertEqual(find_meta_feeds("", BASE), [])

    def test_falls_back_to_string_scan_when_parser_fails(self) -> None:
        html = page('<link rel="alternate" type="application/rss+xml" href="/feed.xml" title="RSS Feed">')
        with mock.patch(
            "feedfinder.main.tools.rss_finder.BeautifulSoup", side_effect=RuntimeError("parser exploded")
        ):
            with self.assertLogs("feedfinder.main.tools.rss_finder", level="WARNING"):
                feeds = find_meta_feeds(html, BASE)
        self.assertEqual([feed.url for feed in feeds], ["https://example.com/feed.xml"])
        self.assertEqual(feeds[0].title, "RSS Feed")


class TestStringParsing(TestCase):
    def test_finds_feed_links(self) -> None:
        html = page(
            '<LINK REL="alternate" TYPE="application/atom+xml" HREF="/atom.xml" TITLE="Atom">',
            "<link rel='alternate' type='application/rss+xml' href='/rss.xml'>",
        )
        feeds = find_meta_feeds_with_string_parsing(html, BASE)
        self.assertEqual(
            [(feed.url, feed.type, feed.title) for feed in feeds],
            [
                ("https://example.com/atom.xml", FeedType.ATOM, "Atom"),
                ("https://example.com/rss.xml", FeedType.RSS, "RSS/Atom feed"),
            ],
        )

    def test_deduplicates_by_url(self) -> None:
        link = '<link rel="alternate" type="application/rss+xml" href="/feed.xml">'
        self.assertEqual(len(find_meta_feeds_with_string_parsing(page(link, link), BASE)), 1)

    def test_skips_overlong_tags(self) -> None:
        long_tag = '<link rel="alternate" type="application/rss+xml" ' + "x" * 1000 + ' href="/long.xml">'
        short_tag = '<link rel="alternate" type="application/rss+xml" href="/short.xml">'
        feeds = find_meta_feeds_with_string_parsing(page(long_tag, short_tag), BASE)
        self.assertEqual([feed.url for feed in feeds], ["https://example.com/short.xml"])

    def test_pathological_input(self) -> None:
        self.assertEqual(find_meta_feeds_with_string_parsing("<link " * 5000, BASE), [])
        self.assertEqual(find_meta_feeds_with_string_parsing('<link rel="' * 5000, BASE), [])


class TestExtractAttributeValue(TestCase):
    def test_quoted_values(self) -> None:
        self.assertEqual(extract_attribute_value('<link href="/a">', "href"), "/a")
        self.assertEqual(extract_attribute_value("<link href='/b'>", "href"), "/b")

    def test_name_is_case_insensitive(self) -> None:
        self.assertEqual(extract_attribute_value('<LINK HREF="/A">', "href"), "/A")

    def test_whitespace_around_equals(self) -> None:
        self.assertEqual(extract_attribute_value('<link href = "/a">', "href"), "/a")
        self.assertEqual(extract_attribute_value('<link href\t=\t"/a">', "href"), "/a")

    def test_missing_or_unquoted(self) -> None:
        self.assertIsNone(extract_attribute_value('<link rel="alternate">', "href"))
        self.assertIsNone(extract_attribute_value("<link href=/a>", "href"))
        self.assertIsNone(extract_attribute_value('<link href="/a>', "href"))
        self.assertIsNone(extract_attribute_value("<link href>", "href"))

    def test_empty_value(self) -> None:
        self.assertEqual(extract_attribute_value('<link title="">', "title"), "")

    def test_matches_whole_attribute_names_only(self) -> None:
        tag = '<link hreflang="en" data-href="/wrong" href="/right">'
        self.assertEqual(extract_attribute_value(tag, "href"), "/right")
