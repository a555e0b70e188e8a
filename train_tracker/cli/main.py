"""Command-line interface for train-tracker.

Commands:
- status: fetch the current release-train status once and print it
- watch: re-fetch periodically, showing an inline error when a refresh fails

Configuration comes from environment variables (see train_tracker.config).
"""

import asyncio
import json
import os
import sys
import time
from typing import Optional

import click
import sentry_sdk

from .. import __version__
from ..config import TrackerConfig, evaluate_boolean, load_config
from ..console import console, print_error, print_milestone_table, print_status
from ..countdown import next_release_countdown
from ..exceptions import ConfigurationError, UpstreamFetchError
from ..logging_config import logger, setup_logging
from ..serialization import serialize_snapshot
from ..status import StatusAggregator, StatusSnapshot


def initialize_sentry() -> None:
    """Initialize Sentry for error tracking when a DSN is configured."""
    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn or not evaluate_boolean(os.getenv("TELEMETRY", "true")):
        return

    def before_send(event, hint):
        """
        Filter events before sending to Sentry.
        Configuration errors are user errors and are not reported.
        """
        if "exc_info" in hint:
            exc_type, exc_value, tb = hint["exc_info"]
            if isinstance(exc_value, ConfigurationError):
                return None
        return event

    sentry_sdk.init(
        dsn=sentry_dsn,
        release=f"train-tracker@{__version__}",
        traces_sample_rate=0.0,
        before_send=before_send,
    )


def _load_config_or_exit() -> TrackerConfig:
    try:
        return load_config()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


def fetch_snapshot(config: TrackerConfig) -> StatusSnapshot:
    """Run one refresh cycle."""
    return asyncio.run(StatusAggregator(config).build_snapshot())


def render(snapshot: StatusSnapshot, config: TrackerConfig, milestones: Optional[str] = None) -> None:
    """Render a snapshot with the countdown and an optional milestone table."""
    release = snapshot.record("desktop", "release")
    countdown = next_release_countdown(
        release.version,
        snapshot.events,
        overrides=config.release_date_overrides,
        product_name=config.product_name,
    )
    print_status(snapshot, config.channels, countdown)

    if milestones:
        # Validated by the status command before fetching
        platform, _, track = milestones.partition("/")
        definition = config.channel(platform, track)
        matcher = config.build_matcher()
        version = snapshot.record(platform, track).version
        events = matcher.all_matches(
            matcher.events_for_platform(snapshot.events, definition.kind),
            version,
            definition.kind,
        )
        print_milestone_table(definition, version, events)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="train-tracker")
@click.option(
    "--log-level",
    default=lambda: os.getenv("LOG_LEVEL", "WARNING"),
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (env: LOG_LEVEL).",
)
@click.option(
    "--structured-logs/--plain-logs",
    default=lambda: os.getenv("LOG_FORMAT", "").lower() == "json",
    help="Emit logs as JSON lines (env: LOG_FORMAT=json).",
)
def cli(log_level: str, structured_logs: bool) -> None:
    """Report release-train status and upcoming milestones per channel."""
    setup_logging(log_level, structured=structured_logs)
    initialize_sentry()


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the raw status snapshot as JSON.")
@click.option(
    "--milestones",
    metavar="PLATFORM/TRACK",
    help="Also list all calendar milestones matching a channel, e.g. desktop/esr_current.",
)
def status(as_json: bool, milestones: Optional[str]) -> None:
    """Fetch the current status once."""
    config = _load_config_or_exit()
    if milestones and config.channel(*milestones.partition("/")[::2]) is None:
        raise click.BadParameter(f"Unknown channel '{milestones}'", param_hint="--milestones")

    try:
        snapshot = fetch_snapshot(config)
    except UpstreamFetchError as e:
        logger.error(f"Failed to fetch status: {e}")
        if as_json:
            click.echo(json.dumps({"error": "Failed to fetch status", "detail": str(e)}))
        else:
            print_error(str(e))
        sys.exit(1)

    if as_json:
        click.echo(serialize_snapshot(snapshot))
    else:
        render(snapshot, config, milestones)


@cli.command()
@click.option(
    "--interval",
    default=60.0,
    show_default=True,
    type=click.FloatRange(min=1.0),
    help="Seconds between refreshes.",
)
@click.option("--count", default=0, type=click.IntRange(min=0), help="Stop after N refreshes (0 = run forever).")
def watch(interval: float, count: int) -> None:
    """Refresh the status periodically."""
    config = _load_config_or_exit()
    refreshes = 0
    while True:
        refreshes += 1
        try:
            snapshot = fetch_snapshot(config)
        except UpstreamFetchError as e:
            # Next tick starts over; no backoff
            logger.error(f"Failed to fetch status: {e}")
            print_error(str(e))
        else:
            if console.is_terminal:
                console.clear()
            render(snapshot, config)

        if count and refreshes >= count:
            break
        time.sleep(interval)


def main() -> None:
    """Entry point for the train-tracker console script."""
    cli()


if __name__ == "__main__":
    main()
