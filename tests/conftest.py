"""Pytest configuration and shared fixtures for all tests."""

from typing import Callable, Dict

import httpx
import pytest
import pytest_asyncio

from train_tracker.config import TrackerConfig

PRODUCT_DETAILS_URL = "https://versions.test/thunderbird_versions.json"
CALENDAR_URL = "https://calendar.test/basic.ics"
MOBILE_NIGHTLY_URL = "https://ftp.test/android/nightly/latest-main/"
MOBILE_TAGS_URL = "https://api.test/repos/thunderbird/thunderbird-android/tags"

PRODUCT_DETAILS = {
    "LATEST_THUNDERBIRD_NIGHTLY_VERSION": "146.0a1",
    "LATEST_THUNDERBIRD_VERSION": "144.0.1",
    "LATEST_THUNDERBIRD_DEVEL_VERSION": "145.0b3",
    "THUNDERBIRD_ESR": "140.4.0esr",
    "THUNDERBIRD_ESR_NEXT": "",
}

NIGHTLY_LISTING = """<html><body><table>
<tr><td><a href="thunderbird-146.0a1.apk">thunderbird-146.0a1.apk</a></td></tr>
<tr><td><a href="thunderbird-146.0a1.apk.sha256">thunderbird-146.0a1.apk.sha256</a></td></tr>
</table></body></html>"""

MOBILE_TAGS = [
    {"name": "THUNDERBIRD_13_0b2"},
    {"name": "THUNDERBIRD_13_0a1"},
    {"name": "THUNDERBIRD_12_1"},
    {"name": "THUNDERBIRD_12_0"},
]

CALENDAR_FEED = "\r\n".join(
    [
        "BEGIN:VCALENDAR",
        "PRODID:-//Google Inc//Google Calendar 70.9054//EN",
        "VERSION:2.0",
        "X-WR-CALNAME:Thunderbird Releases",
        "BEGIN:VEVENT",
        "DTSTART:20251111T160000Z",
        "DTEND:20251111T170000Z",
        "SUMMARY:Thunderbird 145 Release",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "DTSTART;VALUE=DATE:20251020",
        "DTEND;VALUE=DATE:20251021",
        "SUMMARY:145.0b3 builds",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "DTSTART:20251014T160000Z",
        "SUMMARY:Thunderbird 144 Release",
        "DESCRIPTION:Merge day for 144\\, see the wiki",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "DTSTART:20251021T160000Z",
        "SUMMARY:TfA 13.0 release",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "DTSTART:20251007T160000Z",
        "SUMMARY:140.4.0esr release",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ]
)

Responder = Callable[[httpx.Request], httpx.Response]


def respond(status_code: int = 200, **kwargs) -> Responder:
    """Build a responder returning a fresh httpx.Response for every request."""

    def _respond(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, **kwargs)

    return _respond


def fail_with(exc_type: type = httpx.ConnectError) -> Responder:
    """Build a responder that raises a transport error."""

    def _fail(request: httpx.Request) -> httpx.Response:
        raise exc_type("connection refused", request=request)

    return _fail


@pytest.fixture(autouse=True)
def disable_sentry_for_tests(monkeypatch):
    """Disable Sentry telemetry for all tests.

    This fixture runs automatically for every test to prevent Sentry events
    from being sent during test runs.
    """
    monkeypatch.setenv("TELEMETRY", "false")
    monkeypatch.delenv("SENTRY_DSN", raising=False)


@pytest.fixture
def tracker_config() -> TrackerConfig:
    """Configuration pointing at the fake upstream URLs."""
    return TrackerConfig(
        product_details_url=PRODUCT_DETAILS_URL,
        calendar_url=CALENDAR_URL,
        mobile_nightly_url=MOBILE_NIGHTLY_URL,
        mobile_tags_url=MOBILE_TAGS_URL,
    )


@pytest.fixture
def upstream_routes() -> Dict[str, Responder]:
    """Healthy responses for every upstream, keyed by URL. Tests may replace entries."""
    return {
        PRODUCT_DETAILS_URL: respond(json=PRODUCT_DETAILS),
        CALENDAR_URL: respond(text=CALENDAR_FEED),
        MOBILE_NIGHTLY_URL: respond(text=NIGHTLY_LISTING),
        MOBILE_TAGS_URL: respond(json=MOBILE_TAGS),
    }


@pytest.fixture
def mock_transport(upstream_routes) -> httpx.MockTransport:
    """Transport answering from ``upstream_routes``; unknown URLs get a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        # Query strings are not part of the route key
        responder = upstream_routes.get(str(request.url).split("?")[0])
        if responder is None:
            return httpx.Response(404, text="not found")
        return responder(request)

    return httpx.MockTransport(handler)


@pytest_asyncio.fixture
async def http_client(mock_transport):
    """Async client wired to the mock upstreams."""
    async with httpx.AsyncClient(transport=mock_transport) as client:
        yield client
