"""Tests for the FastAPI search endpoint.

The tests patch ``feedfinder.feed_utils.discover_feeds`` wherever a request
would otherwise leave the process; refused URLs never reach it.
"""

from unittest import TestCase, mock

from fastapi.testclient import TestClient

from feedfinder.app_server import app
from feedfinder.main.errors import DiscoveryError, Err, ErrorCode, Ok
from feedfinder.main.models import DiscoveryMethod, FeedResult, FeedType

ENDPOINT = "/api/search-feeds"


class TestAPI(TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.client = TestClient(app)

    def patch_discovery(self, result):
        patcher = mock.patch("feedfinder.feed_utils.discover_feeds", new=mock.AsyncMock(return_value=result))
        discover = patcher.start()
        self.addCleanup(patcher.stop)
        return discover

    def test_routes(self) -> None:
        paths = {route.path for route in app.routes}
        self.assertIn(ENDPOINT, paths)

    def test_successful_search(self) -> None:
        discover = self.patch_discovery(
            Ok(
                [
                    FeedResult(
                        "https://example.com/feed.xml", "Main", FeedType.RSS, DiscoveryMethod.META_TAG
                    )
                ]
            )
        )
        response = self.client.post(ENDPOINT, json={"url": "example.com"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["searchedUrl"], "https://example.com/")
        self.assertEqual(body["totalFound"], 1)
        self.assertEqual(body["feeds"][0]["discoveryMethod"], "meta-tag")
        self.assertEqual(body["feeds"][0]["type"], "RSS")
        self.assertEqual(discover.await_args.args[0], "https://example.com/")

    def test_refused_url_is_generic_400(self) -> None:
        discover = self.patch_discovery(Ok([]))
        with self.assertLogs("feedfinder.main.responses", level="ERROR"):
            response = self.client.post(ENDPOINT, json={"url": "http://localhost/admin"})

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "Invalid request. Please check your input and try again.")
        self.assertRegex(body["errorId"], r"^[0-9a-f]{12}$")
        self.assertNotIn("localhost", response.text)
        discover.assert_not_awaited()

    def test_invalid_json(self) -> None:
        with self.assertLogs("feedfinder.main.responses", level="ERROR") as logs:
            response = self.client.post(
                ENDPOINT, content=b"{not json", headers={"Content-Type": "application/json"}
            )
        self.assertEqual(response.status_code, 400)
        self.assertIn("INVALID_REQUEST_BODY", logs.output[0])

    def test_json_the_decoder_cannot_handle(self) -> None:
        bodies = (
            b'{"url": ' + b"1" * 5000 + b"}",
            b"[" * 100000 + b"]" * 100000,
            b'{"url": "\xff\xfe"}',
        )
        for content in bodies:
            with self.assertLogs("feedfinder.main.responses", level="ERROR") as logs:
                response = self.client.post(
                    ENDPOINT, content=content, headers={"Content-Type": "application/json"}
                )
            self.assertEqual(response.status_code, 400)
            body = response.json()
            self.assertFalse(body["success"])
            self.assertRegex(body["errorId"], r"^[0-9a-f]{12}$")
            self.assertIn("INVALID_REQUEST_BODY", logs.output[0])

    def test_missing_url(self) -> None:
        for payload in ({}, {"url": ""}, {"url": 7}):
            with self.assertLogs("feedfinder.main.responses", level="ERROR") as logs:
                response = self.client.post(ENDPOINT, json=payload)
            self.assertEqual(response.status_code, 400, payload)
            self.assertIn("MISSING_URL", logs.output[0])

    def test_non_object_body(self) -> None:
        with self.assertLogs("feedfinder.main.responses", level="ERROR") as logs:
            response = self.client.post(ENDPOINT, json=["https://example.com"])
        self.assertEqual(response.status_code, 400)
        self.assertIn("INVALID_REQUEST_BODY", logs.output[0])

    def test_discovery_errors_map_to_statuses(self) -> None:
        cases = [
            (DiscoveryError(ErrorCode.FETCH_FAILED, "HTTP 404", status=404), 404),
            (DiscoveryError(ErrorCode.FETCH_FAILED, "HTTP 503", status=503), 502),
            (DiscoveryError(ErrorCode.TIMEOUT_ERROR, "Request timeout for https://example.com/"), 408),
            (DiscoveryError(ErrorCode.NETWORK_ERROR, "Network error: boom"), 500),
            (DiscoveryError(ErrorCode.PARSING_ERROR, "Failed to parse response body"), 500),
        ]
        for error, status in cases:
            with self.subTest(code=error.code, status=error.status):
                self.patch_discovery(Err(error))
                with self.assertLogs("feedfinder.main.responses", level="ERROR"):
                    response = self.client.post(ENDPOINT, json={"url": "https://example.com"})
                self.assertEqual(response.status_code, status)
                self.assertNotIn(error.message, response.text)

    def test_security_headers(self) -> None:
        self.patch_discovery(Ok([]))
        response = self.client.post(ENDPOINT, json={"url": "https://example.com"})
        self.assertEqual(response.headers["x-content-type-options"], "nosniff")
        self.assertEqual(response.headers["x-frame-options"], "DENY")
        self.assertEqual(response.headers["referrer-policy"], "strict-origin-when-cross-origin")
        self.assertIn("default-src 'none'", response.headers["content-security-policy"])

    def test_cors_preflight_allowed_origin(self) -> None:
        response = self.client.options(
            ENDPOINT,
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["access-control-allow-origin"], "http://localhost:3000")
        self.assertEqual(response.headers["access-control-max-age"], "86400")

    def test_cors_preflight_unknown_origin(self) -> None:
        response = self.client.options(
            ENDPOINT,
            headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "POST"},
        )
        self.assertNotIn("access-control-allow-origin", response.headers)
