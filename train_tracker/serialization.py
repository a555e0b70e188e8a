"""JSON serialization of status snapshots.

The field names and nesting produced here are the contract consumed by
display layers:

    {
      "fetchedAt": "2025-10-07T12:00:00.000Z",
      "channels": {
        "desktop": {"release": {"version": ..., "milestone": ..., "eventSummary": ...}, ...},
        "android": {...}
      },
      "events": [{"summary": ..., "start": ..., "end": ..., "description": ...}, ...]
    }
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .calendar_feed import CalendarEvent
from .status import ChannelRecord, StatusSnapshot


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """
    Format a datetime as ISO-8601 UTC with milliseconds and a Z suffix.

    Returns:
        e.g. "2025-10-14T16:00:00.000Z", or None for None
    """
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def event_to_dict(event: CalendarEvent) -> Dict[str, Any]:
    return {
        "summary": event.summary,
        "start": format_timestamp(event.start),
        "end": format_timestamp(event.end),
        "description": event.description,
    }


def record_to_dict(record: ChannelRecord) -> Dict[str, Any]:
    return {
        "version": record.version,
        "milestone": format_timestamp(record.milestone),
        "eventSummary": record.event_summary,
    }


def snapshot_to_dict(snapshot: StatusSnapshot) -> Dict[str, Any]:
    """Convert a snapshot to plain JSON-compatible data."""
    return {
        "fetchedAt": format_timestamp(snapshot.fetched_at),
        "channels": {
            platform: {track: record_to_dict(record) for track, record in tracks.items()}
            for platform, tracks in snapshot.channels.items()
        },
        "events": [event_to_dict(event) for event in snapshot.events],
    }


def serialize_snapshot(snapshot: StatusSnapshot, indent: Optional[int] = 2) -> str:
    """Serialize a snapshot to a JSON string."""
    return json.dumps(snapshot_to_dict(snapshot), indent=indent)
