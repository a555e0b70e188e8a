"""Status aggregation: upstream versions + calendar milestones -> snapshot.

A refresh cycle fetches four upstreams concurrently on one event loop:

- desktop versions (product-details JSON)
- mobile versions, itself a join of the nightly listing and the tag list
- the release calendar

Mobile sub-fetch failures degrade to None for the affected fields. Desktop
and calendar failures abort the whole refresh with UpstreamFetchError and
cancel the fetches still running.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import httpx

from .calendar_feed import CalendarEvent, parse_calendar
from .config import DESKTOP, MOBILE, TrackerConfig
from .exceptions import UpstreamFetchError
from .http_client import create_client
from .logging_config import logger
from .matching import EventMatcher
from ._providers import (
    CalendarFeedProvider,
    DataProvider,
    NightlyListingProvider,
    ProductDetailsProvider,
    TagListProvider,
)
from .versions import classify_tags


@dataclass(frozen=True)
class ChannelRecord:
    """Current version of one channel and its matched milestone."""

    version: Optional[str] = None
    milestone: Optional[datetime] = None
    event_summary: Optional[str] = None


@dataclass(frozen=True)
class StatusSnapshot:
    """Immutable result of one refresh cycle."""

    fetched_at: datetime
    channels: Mapping[str, Mapping[str, ChannelRecord]]
    events: Tuple[CalendarEvent, ...]

    def record(self, platform: str, track: str) -> ChannelRecord:
        """Channel record, or an empty record for unknown channels."""
        return self.channels.get(platform, {}).get(track) or ChannelRecord()


@dataclass(frozen=True)
class Providers:
    """The upstream providers used by one aggregator."""

    desktop: DataProvider
    nightly: DataProvider
    tags: DataProvider
    calendar: DataProvider

    @classmethod
    def from_config(cls, config: TrackerConfig) -> "Providers":
        return cls(
            desktop=ProductDetailsProvider(config.product_details_url, config.desktop_fields),
            nightly=NightlyListingProvider(config.mobile_nightly_url, config.nightly_pattern),
            tags=TagListProvider(config.mobile_tags_url),
            calendar=CalendarFeedProvider(config.calendar_url),
        )


class StatusAggregator:
    """
    Builds StatusSnapshots from the configured upstreams.

    The aggregator holds no state between calls; every build_snapshot()
    fetches everything again.

    Example:
        aggregator = StatusAggregator(load_config())
        snapshot = await aggregator.build_snapshot()
    """

    def __init__(
        self,
        config: Optional[TrackerConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        matcher: Optional[EventMatcher] = None,
        providers: Optional[Providers] = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            config: Tracker configuration (defaults to TrackerConfig())
            client: Optional shared client; left open after each build
            matcher: Optional custom matcher (defaults to config.build_matcher())
            providers: Optional custom providers (defaults to Providers.from_config())
        """
        self.config = config or TrackerConfig()
        self._client = client
        self.matcher = matcher or self.config.build_matcher()
        self.providers = providers or Providers.from_config(self.config)

    async def build_snapshot(self, now: Optional[datetime] = None) -> StatusSnapshot:
        """
        Fetch all upstreams and assemble a snapshot.

        Args:
            now: Reference time for upcoming-event fallbacks (default: current UTC time)

        Returns:
            A fresh StatusSnapshot

        Raises:
            UpstreamFetchError: If the desktop versions or the calendar cannot be fetched
        """
        if self._client is not None:
            return await self._build(self._client, now)
        async with create_client(self.config.request_timeout) as client:
            return await self._build(client, now)

    async def _build(self, client: httpx.AsyncClient, now: Optional[datetime]) -> StatusSnapshot:
        try:
            # A failing branch cancels the fetches still in flight
            async with asyncio.TaskGroup() as group:
                desktop_task = group.create_task(self.providers.desktop.fetch(client))
                mobile_task = group.create_task(self._fetch_mobile_versions(client))
                events_task = group.create_task(self._fetch_events(client))
        except ExceptionGroup as failures:
            # Callers see the first failure, not the group
            raise failures.exceptions[0] from None

        events = events_task.result()
        versions = {DESKTOP: desktop_task.result(), MOBILE: mobile_task.result()}

        channels: Dict[str, Dict[str, ChannelRecord]] = {}
        for definition in self.config.channels:
            version = versions.get(definition.platform, {}).get(definition.track)
            event = self.matcher.best_match(events, version, definition.kind, now=now)
            channels.setdefault(definition.platform, {})[definition.track] = ChannelRecord(
                version=version,
                milestone=event.start if event else None,
                event_summary=event.summary if event else None,
            )
            logger.debug(
                f"{definition.key}: version={version} milestone={event.summary if event else None}"
            )

        snapshot = StatusSnapshot(
            fetched_at=datetime.now(timezone.utc),
            channels=MappingProxyType(
                {platform: MappingProxyType(tracks) for platform, tracks in channels.items()}
            ),
            events=tuple(events),
        )
        logger.info(f"Built status snapshot with {len(snapshot.events)} events")
        return snapshot

    async def _fetch_events(self, client: httpx.AsyncClient) -> List[CalendarEvent]:
        raw = await self.providers.calendar.fetch(client)
        return parse_calendar(raw)

    async def _fetch_mobile_versions(self, client: httpx.AsyncClient) -> Dict[str, Optional[str]]:
        nightly, tags = await asyncio.gather(
            self.providers.nightly.fetch(client),
            self.providers.tags.fetch(client),
            return_exceptions=True,
        )
        for result in (nightly, tags):
            # Only upstream outages degrade; anything else propagates
            if isinstance(result, BaseException) and not isinstance(result, UpstreamFetchError):
                raise result

        if isinstance(nightly, UpstreamFetchError):
            logger.warning(f"Mobile nightly version unavailable: {nightly}")
            nightly = None

        beta: Optional[str] = None
        release: Optional[str] = None
        if isinstance(tags, UpstreamFetchError):
            logger.warning(f"Mobile tag versions unavailable: {tags}")
        else:
            tag_versions = classify_tags(tags, self.config.tag_prefix)
            beta, release = tag_versions.beta, tag_versions.release

        return {"daily": nightly, "beta": beta, "release": release}


async def get_status(
    config: Optional[TrackerConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> StatusSnapshot:
    """
    Get the current release-train status.

    Args:
        config: Tracker configuration (defaults to TrackerConfig())
        client: Optional shared HTTP client

    Returns:
        A fresh StatusSnapshot

    Raises:
        UpstreamFetchError: If a required upstream fails
    """
    return await StatusAggregator(config, client=client).build_snapshot()
