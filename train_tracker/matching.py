"""Milestone matching between channel versions and calendar events.

The release calendar is maintained by hand, so version numbers show up in
many textual forms ("Thunderbird 132 Beta", "132.0b3 builds", "TfA 9.0
release"). Matching is a cascade that prefers the most specific rule that
produces any result and falls back to broader sets otherwise.

Cascade, evaluated in order:

1. Universe: all events; mobile channels only see mobile milestones.
2. Version tier: events containing the full version, or the major version
   as a standalone token.
3. LTS channels: narrow the version tier to the LTS phase patterns
   (``N.0a1``, ``N.0bX``, ``N.x[.y[.z]]esr``), retrying on all events.
4. Fallbacks: the mobile universe, product-name events (non-LTS desktop),
   then every event (desktop only).

Both the single "best" milestone per channel and the full milestone table
are read from the same cascade.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .calendar_feed import CalendarEvent
from .versions import extract_major


class ChannelKind(str, Enum):
    """How a channel's versions relate to calendar summaries."""

    DESKTOP = "desktop"
    DESKTOP_LTS = "desktop-lts"
    MOBILE = "mobile"


class MatchTier(str, Enum):
    """Which cascade rule produced the candidates."""

    VERSION = "version"
    LTS_PHASE = "lts-phase"
    MOBILE_FALLBACK = "mobile-fallback"
    PRODUCT_FALLBACK = "product-fallback"
    UNIVERSAL = "universal"
    NONE = "none"


@dataclass(frozen=True)
class Candidates:
    """Result of running the cascade for one channel."""

    tier: MatchTier
    events: Tuple[CalendarEvent, ...]
    exact: Tuple[CalendarEvent, ...] = ()


def _word(text: str) -> str:
    return r"\b" + re.escape(text) + r"\b"


def major_token_pattern(major: str) -> "re.Pattern[str]":
    """Regex matching the major version as a standalone token."""
    return re.compile(_word(major))


def lts_phase_patterns(major: str) -> List["re.Pattern[str]"]:
    """Regexes for the early-preview, beta and ESR point releases of a major version."""
    escaped = re.escape(major)
    return [
        re.compile(rf"\b{escaped}\.0a1\b", re.IGNORECASE),
        re.compile(rf"\b{escaped}\.0b\d+\b", re.IGNORECASE),
        re.compile(rf"\b{escaped}(?:\.\d+){{1,3}}esr\b", re.IGNORECASE),
    ]


class EventMatcher:
    """
    Correlates channel versions with calendar events.

    Example:
        matcher = EventMatcher(product_name="Thunderbird")
        event = matcher.best_match(events, "132.0b3", ChannelKind.DESKTOP)
        table = matcher.all_matches(events, "140.3.1esr", ChannelKind.DESKTOP_LTS)
    """

    def __init__(
        self,
        product_name: str = "Thunderbird",
        mobile_platform: str = "Android",
        mobile_prefixes: Sequence[str] = ("TfA",),
        mobile_tokens: Sequence[str] = ("TbA",),
    ) -> None:
        """
        Initialize the matcher.

        Args:
            product_name: Product name as it appears in event summaries
            mobile_platform: Mobile platform name ("Thunderbird for Android")
            mobile_prefixes: Abbreviations that mark a mobile milestone at the start of a summary
            mobile_tokens: Abbreviations that mark a mobile milestone anywhere in a summary
        """
        self.product_name = product_name
        self._product_re = re.compile(re.escape(product_name), re.IGNORECASE)

        signatures = [
            re.compile(rf"{re.escape(product_name)}\s*(for\s+)?{re.escape(mobile_platform)}", re.IGNORECASE)
        ]
        if mobile_prefixes:
            alternatives = "|".join(re.escape(prefix) for prefix in mobile_prefixes)
            self._mobile_prefix_re: Optional[re.Pattern[str]] = re.compile(rf"^(?:{alternatives})\b", re.IGNORECASE)
            signatures.append(self._mobile_prefix_re)
        else:
            self._mobile_prefix_re = None
        for token in mobile_tokens:
            signatures.append(re.compile(_word(token), re.IGNORECASE))
        self._mobile_signatures = signatures

    def is_mobile_milestone(self, summary: Optional[str]) -> bool:
        """Check if an event summary describes a mobile milestone."""
        if not summary:
            return False
        return any(pattern.search(summary) for pattern in self._mobile_signatures)

    def events_for_platform(self, events: Sequence[CalendarEvent], platform_kind: ChannelKind) -> List[CalendarEvent]:
        """
        Pre-filter events for a platform's milestone table.

        Mobile channels keep mobile milestones; desktop channels drop events
        whose summary starts with a mobile abbreviation.
        """
        if platform_kind == ChannelKind.MOBILE:
            return [event for event in events if self.is_mobile_milestone(event.summary)]
        if self._mobile_prefix_re is None:
            return list(events)
        return [event for event in events if not event.summary or not self._mobile_prefix_re.search(event.summary)]

    def candidates(
        self,
        events: Sequence[CalendarEvent],
        version: Optional[str],
        kind: ChannelKind,
    ) -> Candidates:
        """
        Run the matching cascade.

        Args:
            events: Calendar events, sorted by start
            version: Channel version, may be None
            kind: Channel kind

        Returns:
            Candidates with the winning tier and its events in list order
        """
        all_events = list(events)
        if kind == ChannelKind.MOBILE:
            universe = [event for event in all_events if self.is_mobile_milestone(event.summary)]
        else:
            universe = all_events

        major = extract_major(version)
        exact: List[CalendarEvent] = []
        tier: List[CalendarEvent] = []
        if version:
            needle = version.lower() if kind == ChannelKind.MOBILE else version
            major_re = major_token_pattern(major) if major else None
            for event in universe:
                summary = event.summary or ""
                haystack = summary.lower() if kind == ChannelKind.MOBILE else summary
                if needle in haystack:
                    exact.append(event)
                    tier.append(event)
                elif major_re and major_re.search(summary):
                    tier.append(event)

        if kind == ChannelKind.DESKTOP_LTS:
            refined = self._filter_lts(tier, major)
            if not refined:
                refined = self._filter_lts(all_events, major)
            if refined:
                return Candidates(
                    MatchTier.VERSION if refined == tier else MatchTier.LTS_PHASE,
                    tuple(refined),
                    tuple(event for event in exact if event in refined),
                )
        elif tier:
            return Candidates(MatchTier.VERSION, tuple(tier), tuple(exact))

        if kind == ChannelKind.MOBILE:
            if universe:
                return Candidates(MatchTier.MOBILE_FALLBACK, tuple(universe))
            # Desktop milestones are never offered for mobile channels
            return Candidates(MatchTier.NONE, ())

        if kind == ChannelKind.DESKTOP:
            product_events = [event for event in all_events if event.summary and self._product_re.search(event.summary)]
            if product_events:
                return Candidates(MatchTier.PRODUCT_FALLBACK, tuple(product_events))

        if all_events:
            return Candidates(MatchTier.UNIVERSAL, tuple(all_events))
        return Candidates(MatchTier.NONE, ())

    def all_matches(
        self,
        events: Sequence[CalendarEvent],
        version: Optional[str],
        kind: ChannelKind,
    ) -> List[CalendarEvent]:
        """Return every candidate the cascade settles on (milestone table)."""
        return list(self.candidates(events, version, kind).events)

    def best_match(
        self,
        events: Sequence[CalendarEvent],
        version: Optional[str],
        kind: ChannelKind,
        now: Optional[datetime] = None,
    ) -> Optional[CalendarEvent]:
        """
        Pick the single most relevant event for a channel.

        Args:
            events: Calendar events, sorted by start
            version: Channel version, may be None
            kind: Channel kind
            now: Reference time for upcoming-event fallbacks (default: current UTC time)

        Returns:
            The best matching event, or None
        """
        if not version and kind != ChannelKind.MOBILE:
            return None

        result = self.candidates(events, version, kind)
        if not result.events:
            return None

        if result.tier in (MatchTier.VERSION, MatchTier.LTS_PHASE):
            return result.exact[0] if result.exact else result.events[0]

        if result.tier == MatchTier.MOBILE_FALLBACK:
            # Events are time-sorted, so the last one is the furthest out
            return result.events[-1]

        # Only upcoming events qualify; past milestones are not shown
        reference = now or datetime.now(timezone.utc)
        for event in result.events:
            if event.start and event.start >= reference:
                return event
        return None

    @staticmethod
    def _filter_lts(events: Sequence[CalendarEvent], major: Optional[str]) -> List[CalendarEvent]:
        if not major:
            return []
        patterns = lts_phase_patterns(major)
        return [event for event in events if event.summary and any(p.search(event.summary) for p in patterns)]
