"""Countdown to the next major desktop release."""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence

from .calendar_feed import CalendarEvent
from .logging_config import logger
from .versions import extract_major

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class Countdown:
    """Banner data for the next major release."""

    major: int
    label: str
    release_date: datetime
    days_remaining: int
    source: str  # "override" or "calendar"


def days_until(target: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """
    Whole days (rounded up) until ``target``.

    Returns:
        Positive day count, or None if the target is missing or not in the future
    """
    if target is None:
        return None
    reference = now or datetime.now(timezone.utc)
    days = math.ceil((target - reference).total_seconds() / SECONDS_PER_DAY)
    return days if days > 0 else None


def find_release_event(events: Sequence[CalendarEvent], major: int) -> Optional[CalendarEvent]:
    """Earliest event mentioning ``major`` as a token and the word "release"."""
    token_re = re.compile(rf"\b{major}\b")
    matches = [
        event
        for event in events
        if event.summary and token_re.search(event.summary) and "release" in event.summary.lower()
    ]
    if not matches:
        return None
    return sorted(matches, key=lambda event: event.sort_key)[0]


def next_release_countdown(
    release_version: Optional[str],
    events: Sequence[CalendarEvent],
    overrides: Optional[Mapping[int, datetime]] = None,
    product_name: str = "Thunderbird",
    now: Optional[datetime] = None,
) -> Optional[Countdown]:
    """
    Compute the countdown to the release after ``release_version``.

    An override for the next major version takes precedence over the
    calendar. When both exist and disagree, the override still wins and the
    mismatch is logged.

    Args:
        release_version: Current desktop release version
        events: Calendar events
        overrides: Known release dates keyed by major version
        product_name: Used for the banner label
        now: Reference time (default: current UTC time)

    Returns:
        Countdown, or None when there is no upcoming date
    """
    major = extract_major(release_version)
    if major is None:
        return None
    next_major = int(major) + 1

    event = find_release_event(events, next_major)
    calendar_date = event.start if event else None

    override = (overrides or {}).get(next_major)
    if override is not None:
        if calendar_date is not None and calendar_date != override:
            logger.warning(
                f"Release date override for {next_major} ({override.isoformat()}) "
                f"differs from calendar ({calendar_date.isoformat()})"
            )
        release_date, source = override, "override"
    elif calendar_date is not None:
        release_date, source = calendar_date, "calendar"
    else:
        return None

    remaining = days_until(release_date, now)
    if remaining is None:
        return None

    return Countdown(
        major=next_major,
        label=f"{product_name} {next_major}.0",
        release_date=release_date,
        days_remaining=remaining,
        source=source,
    )
