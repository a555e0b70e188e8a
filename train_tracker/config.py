"""Configuration for train-tracker.

Every setting has a default suitable for tracking Thunderbird and can be
overridden through environment variables:

- PRODUCT_NAME: Product name as used in calendar summaries (default: Thunderbird)
- PRODUCT_DETAILS_URL: Desktop versions JSON
- CALENDAR_URL: Release calendar (iCalendar feed)
- MOBILE_NIGHTLY_URL: Directory listing with the latest mobile nightly build
- MOBILE_TAGS_URL: Tag listing of the mobile repository
- TAG_PREFIX: Prefix of mobile release tags (default: THUNDERBIRD_)
- REQUEST_TIMEOUT: Transport timeout in seconds, 0 to disable (default: 30)
- RELEASE_DATE_OVERRIDES: JSON object mapping major version to ISO date,
  e.g. {"144": "2025-10-14T16:00:00Z"}

LOG_LEVEL and LOG_FORMAT (json for structured logs) are read by the CLI.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from .exceptions import ConfigurationError
from .logging_config import logger
from .matching import ChannelKind, EventMatcher
from .versions import DEFAULT_NIGHTLY_PATTERN, DEFAULT_TAG_PREFIX

DEFAULT_PRODUCT_DETAILS_URL = "https://product-details.mozilla.org/1.0/thunderbird_versions.json"
DEFAULT_CALENDAR_URL = (
    "https://calendar.google.com/calendar/ical/"
    "c_f7b7f2cea6f65593ef05afaf2abfcfb48f87e25794468cd4a19d16495d17b6d1%40group.calendar.google.com"
    "/public/basic.ics"
)
DEFAULT_MOBILE_NIGHTLY_URL = "https://ftp.mozilla.org/pub/thunderbird-mobile/android/nightly/latest-main/"
DEFAULT_MOBILE_TAGS_URL = "https://api.github.com/repos/thunderbird/thunderbird-android/tags?per_page=100"
DEFAULT_REQUEST_TIMEOUT = 30.0

DESKTOP = "desktop"
MOBILE = "android"

# Track name -> field in the product-details JSON
DEFAULT_DESKTOP_FIELDS: Dict[str, str] = {
    "daily": "LATEST_THUNDERBIRD_NIGHTLY_VERSION",
    "release": "LATEST_THUNDERBIRD_VERSION",
    "beta": "LATEST_THUNDERBIRD_DEVEL_VERSION",
    "esr_current": "THUNDERBIRD_ESR",
    "esr_next": "THUNDERBIRD_ESR_NEXT",
}


@dataclass(frozen=True)
class ChannelDefinition:
    """A (platform, track) pair and how to present and match it."""

    platform: str
    track: str
    name: str
    hint: str
    kind: ChannelKind

    @property
    def key(self) -> str:
        return f"{self.platform}/{self.track}"


DEFAULT_CHANNELS: Tuple[ChannelDefinition, ...] = (
    ChannelDefinition(DESKTOP, "esr_current", "ESR (current)", "Current ESR", ChannelKind.DESKTOP_LTS),
    ChannelDefinition(DESKTOP, "esr_next", "ESR (next)", "Next ESR", ChannelKind.DESKTOP_LTS),
    ChannelDefinition(DESKTOP, "release", "Release", "Stable release channel", ChannelKind.DESKTOP),
    ChannelDefinition(DESKTOP, "beta", "Beta", "Beta testing channel", ChannelKind.DESKTOP),
    ChannelDefinition(DESKTOP, "daily", "Daily", "Cutting-edge nightly builds", ChannelKind.DESKTOP),
    ChannelDefinition(MOBILE, "release", "Release", "Stable Android release channel", ChannelKind.MOBILE),
    ChannelDefinition(MOBILE, "beta", "Beta", "Android beta testing channel", ChannelKind.MOBILE),
    ChannelDefinition(MOBILE, "daily", "Daily", "Android nightly builds", ChannelKind.MOBILE),
)


def evaluate_boolean(value: str) -> bool:
    """Interpret common truthy strings ("true", "yes", "1")."""
    return value.lower() in ["true", "yes", "yeah", "1"]


def parse_release_overrides(raw: Optional[str]) -> Dict[int, datetime]:
    """
    Parse the RELEASE_DATE_OVERRIDES JSON object.

    Args:
        raw: JSON like {"144": "2025-10-14T16:00:00Z"}

    Returns:
        Mapping of major version to UTC datetime

    Raises:
        ConfigurationError: If the JSON, a key or a date is invalid
    """
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON format for RELEASE_DATE_OVERRIDES: {e}")
    if not isinstance(data, dict):
        raise ConfigurationError('RELEASE_DATE_OVERRIDES must be a JSON object like {"144": "2025-10-14T16:00:00Z"}')

    overrides: Dict[int, datetime] = {}
    for key, value in data.items():
        try:
            major = int(key)
        except ValueError:
            raise ConfigurationError(f"Invalid major version in RELEASE_DATE_OVERRIDES: '{key}'")
        try:
            # fromisoformat only accepts a trailing Z from Python 3.11 on
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise ConfigurationError(f"Invalid date for version {major} in RELEASE_DATE_OVERRIDES: '{value}'")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        overrides[major] = parsed.astimezone(timezone.utc)
    return overrides


@dataclass
class TrackerConfig:
    """Configuration settings for a train-tracker refresh cycle."""

    product_name: str = "Thunderbird"
    product_details_url: str = DEFAULT_PRODUCT_DETAILS_URL
    calendar_url: str = DEFAULT_CALENDAR_URL
    mobile_nightly_url: str = DEFAULT_MOBILE_NIGHTLY_URL
    mobile_tags_url: str = DEFAULT_MOBILE_TAGS_URL
    tag_prefix: str = DEFAULT_TAG_PREFIX
    nightly_pattern: str = DEFAULT_NIGHTLY_PATTERN
    mobile_platform: str = "Android"
    mobile_prefixes: Tuple[str, ...] = ("TfA",)
    mobile_tokens: Tuple[str, ...] = ("TbA",)
    request_timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT
    desktop_fields: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_DESKTOP_FIELDS))
    channels: Tuple[ChannelDefinition, ...] = DEFAULT_CHANNELS
    release_date_overrides: Dict[int, datetime] = field(default_factory=dict)

    def validate(self) -> None:
        """
        Validate configuration settings.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.product_name:
            raise ConfigurationError("Product name is not defined")
        for label, url in (
            ("PRODUCT_DETAILS_URL", self.product_details_url),
            ("CALENDAR_URL", self.calendar_url),
            ("MOBILE_NIGHTLY_URL", self.mobile_nightly_url),
            ("MOBILE_TAGS_URL", self.mobile_tags_url),
        ):
            self._validate_url(label, url)
        if self.request_timeout is not None and self.request_timeout < 0:
            raise ConfigurationError("REQUEST_TIMEOUT must not be negative")

        seen = set()
        for channel in self.channels:
            if channel.key in seen:
                raise ConfigurationError(f"Duplicate channel definition: {channel.key}")
            seen.add(channel.key)
            if channel.platform == DESKTOP and channel.track not in self.desktop_fields:
                raise ConfigurationError(f"No product-details field configured for desktop track '{channel.track}'")

    @staticmethod
    def _validate_url(label: str, url: str) -> None:
        from urllib.parse import urlparse

        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"{label} must be an http:// or https:// URL, got '{url}'")

    def build_matcher(self) -> EventMatcher:
        """Create the EventMatcher for this product."""
        return EventMatcher(
            product_name=self.product_name,
            mobile_platform=self.mobile_platform,
            mobile_prefixes=self.mobile_prefixes,
            mobile_tokens=self.mobile_tokens,
        )

    def channel(self, platform: str, track: str) -> Optional[ChannelDefinition]:
        """Look up a channel definition."""
        for definition in self.channels:
            if definition.platform == platform and definition.track == track:
                return definition
        return None


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None or raw == "":
        return DEFAULT_REQUEST_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"REQUEST_TIMEOUT must be a number of seconds, got '{raw}'")
    return value if value != 0 else None


def load_config() -> TrackerConfig:
    """
    Load and validate configuration from environment variables.

    Returns:
        Validated configuration object

    Raises:
        ConfigurationError: If configuration is invalid
    """
    config = TrackerConfig(
        product_name=os.getenv("PRODUCT_NAME", "Thunderbird"),
        product_details_url=os.getenv("PRODUCT_DETAILS_URL", DEFAULT_PRODUCT_DETAILS_URL),
        calendar_url=os.getenv("CALENDAR_URL", DEFAULT_CALENDAR_URL),
        mobile_nightly_url=os.getenv("MOBILE_NIGHTLY_URL", DEFAULT_MOBILE_NIGHTLY_URL),
        mobile_tags_url=os.getenv("MOBILE_TAGS_URL", DEFAULT_MOBILE_TAGS_URL),
        tag_prefix=os.getenv("TAG_PREFIX", DEFAULT_TAG_PREFIX),
        request_timeout=_parse_timeout(os.getenv("REQUEST_TIMEOUT")),
        release_date_overrides=parse_release_overrides(os.getenv("RELEASE_DATE_OVERRIDES")),
    )
    config.validate()

    if config.release_date_overrides:
        logger.info(f"Using release date overrides for versions: {sorted(config.release_date_overrides)}")

    return config
