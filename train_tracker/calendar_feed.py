"""Calendar feed parsing (iCalendar VEVENT blocks)."""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from .logging_config import logger

EVENT_BLOCK_MARKER = "BEGIN:VEVENT"

# RFC 5545 folding: CRLF (or bare LF) followed by one space or tab
_FOLD_RE = re.compile(r"\r?\n[ \t]")
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_DATETIME_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})Z?$")
_DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")


@dataclass(frozen=True)
class CalendarEvent:
    """One VEVENT from the calendar feed."""

    summary: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    description: str = ""

    @property
    def sort_key(self) -> str:
        """Start as an ISO-8601 UTC string; events without a start compare as ""."""
        return self.start.isoformat() if self.start else ""


def parse_ics_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a DTSTART/DTEND value.

    Handles ``20251004T120000Z`` (UTC, the trailing Z is optional) and
    ``20251004`` (local midnight). Other values go through ISO-8601 parsing.

    Args:
        value: Raw property value

    Returns:
        Timezone-aware UTC datetime, or None if the value cannot be parsed
    """
    if not value:
        return None
    value = value.strip()

    try:
        match = _DATETIME_RE.match(value)
        if match:
            return datetime(*(int(part) for part in match.groups()), tzinfo=timezone.utc)

        match = _DATE_RE.match(value)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return datetime(year, month, day).astimezone().astimezone(timezone.utc)

        parsed = datetime.fromisoformat(value)
    except (ValueError, OverflowError, OSError):
        logger.debug(f"Unparsable calendar date: {value!r}")
        return None

    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed.astimezone(timezone.utc)


def unfold(block: str) -> str:
    """Join folded continuation lines back onto their logical line."""
    return _FOLD_RE.sub("", block)


def _parse_block(block: str) -> CalendarEvent:
    summary = ""
    description = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    for line in _LINE_SPLIT_RE.split(unfold(block)):
        if not line:
            continue
        key, _, value = line.partition(":")
        # Keys may carry parameters, e.g. DTSTART;TZID=Europe/Berlin or DTSTART;VALUE=DATE
        if key.startswith("SUMMARY"):
            summary = value
        elif key.startswith("DESCRIPTION"):
            description = value
        elif key.startswith("DTSTART"):
            start = parse_ics_date(value) or start
        elif key.startswith("DTEND"):
            end = parse_ics_date(value) or end

    return CalendarEvent(summary=summary, start=start, end=end, description=description)


def parse_calendar(raw: str) -> List[CalendarEvent]:
    """
    Parse a raw calendar feed into events sorted by start.

    Text before the first VEVENT (calendar properties, timezones) is ignored.
    Fields that cannot be parsed are left empty; the event itself is kept.

    Args:
        raw: Calendar feed text

    Returns:
        Events in ascending start order, events without a start first
    """
    blocks = raw.split(EVENT_BLOCK_MARKER)[1:]
    events = [_parse_block(block) for block in blocks]
    events.sort(key=lambda event: event.sort_key)
    logger.debug(f"Parsed {len(events)} calendar events")
    return events
