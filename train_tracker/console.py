"""Rich console utilities for train-tracker.

This module provides a shared Rich Console instance and the terminal
rendering of status snapshots: channel tables, the release countdown
banner and per-channel milestone tables.
"""

import os
from datetime import datetime
from typing import List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from .calendar_feed import CalendarEvent
from .config import DESKTOP, ChannelDefinition
from .countdown import Countdown
from .status import StatusSnapshot

# GitHub Actions logs render ANSI colour but are not a TTY
IS_GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"

PLACEHOLDER = "—"

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "channel": "bold blue",
        "version": "magenta",
        "muted": "dim",
    }
)

# Shared console instance
console = Console(
    theme=custom_theme,
    force_terminal=IS_GITHUB_ACTIONS or None,
    color_system="auto",
)


def format_date(value: Optional[datetime]) -> str:
    """Format a date as e.g. "October 14, 2025" (local time)."""
    if value is None:
        return PLACEHOLDER
    local = value.astimezone()
    return f"{local.strftime('%B')} {local.day}, {local.year}"


def visible_channels(snapshot: StatusSnapshot, channels: Sequence[ChannelDefinition]) -> List[ChannelDefinition]:
    """
    Channels worth showing for this snapshot.

    The next-ESR channel is hidden while there is no next ESR, and the
    current ESR is then labelled plain "ESR".
    """
    esr_next_version = snapshot.record(DESKTOP, "esr_next").version
    visible = []
    for definition in channels:
        if definition.platform == DESKTOP and definition.track == "esr_next" and not esr_next_version:
            continue
        if definition.platform == DESKTOP and definition.track == "esr_current" and not esr_next_version:
            definition = ChannelDefinition(
                definition.platform, definition.track, "ESR", definition.hint, definition.kind
            )
        visible.append(definition)
    return visible


def build_channel_table(
    snapshot: StatusSnapshot,
    channels: Sequence[ChannelDefinition],
    platform: str,
    title: str,
) -> Table:
    """Table of one platform's channels with their version and milestone."""
    table = Table(title=title, show_header=True, header_style="bold", title_justify="left")
    table.add_column("Channel", style="channel")
    table.add_column("Version", style="version")
    table.add_column("Milestone")
    table.add_column("Event", style="muted")

    for definition in visible_channels(snapshot, channels):
        if definition.platform != platform:
            continue
        record = snapshot.record(definition.platform, definition.track)
        table.add_row(
            definition.name,
            record.version or PLACEHOLDER,
            format_date(record.milestone),
            record.event_summary or PLACEHOLDER,
        )
    return table


def print_status(
    snapshot: StatusSnapshot,
    channels: Sequence[ChannelDefinition],
    countdown: Optional[Countdown] = None,
) -> None:
    """Print the countdown banner and the channel tables."""
    if countdown:
        print_countdown(countdown)
    console.print(build_channel_table(snapshot, channels, DESKTOP, "Desktop"))
    for platform in sorted({definition.platform for definition in channels} - {DESKTOP}):
        console.print(build_channel_table(snapshot, channels, platform, platform.capitalize()))
    console.print(f"[muted]Fetched at {snapshot.fetched_at.astimezone().strftime('%Y-%m-%d %H:%M:%S')}[/muted]")


def print_countdown(countdown: Countdown) -> None:
    """Print the next-release countdown banner."""
    days = "day" if countdown.days_remaining == 1 else "days"
    banner = Text()
    banner.append(f"{countdown.label}", style="bold")
    banner.append(f" ships {format_date(countdown.release_date)} ")
    banner.append(f"({countdown.days_remaining} {days} to go)", style="success")
    console.print(Panel(banner, title="Next release", expand=False))


def print_milestone_table(
    definition: ChannelDefinition,
    version: Optional[str],
    events: Sequence[CalendarEvent],
) -> None:
    """Print the milestone table for one channel."""
    title = f"{definition.name} {PLACEHOLDER} {version or PLACEHOLDER}"
    if not events:
        console.print(f"[warning]{title}: no matching milestones found in the calendar.[/warning]")
        return

    table = Table(title=title, show_header=True, header_style="bold", title_justify="left")
    table.add_column("Date")
    table.add_column("Milestone")
    for event in events:
        table.add_row(format_date(event.start), event.summary or PLACEHOLDER)
    console.print(table)


def print_error(message: str) -> None:
    """Print an inline error in place of channel data."""
    console.print(f"[error]Error loading status: {message}[/error]")
