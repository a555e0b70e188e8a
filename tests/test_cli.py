"""Tests for the Click CLI interface.

These tests verify that:
1. The status command renders tables or JSON from a snapshot
2. Upstream failures exit non-zero with an error message
3. Channel names passed to --milestones are validated
4. The watch command keeps going after a failed refresh
"""

import json
import unittest
from datetime import datetime, timezone
from importlib import import_module
from types import MappingProxyType
from unittest.mock import patch

from click.testing import CliRunner
from rich.console import Console

from train_tracker import __version__
from train_tracker.calendar_feed import CalendarEvent
from train_tracker.cli.main import cli
from train_tracker.console import custom_theme
from train_tracker.exceptions import UpstreamFetchError
from train_tracker.status import ChannelRecord, StatusSnapshot

# train_tracker.cli re-exports the `main` function, which shadows the module name.
cli_main_module = import_module("train_tracker.cli.main")

RELEASE_DATE = datetime(2025, 10, 14, 16, 0, tzinfo=timezone.utc)
ESR_DATE = datetime(2025, 10, 7, 16, 0, tzinfo=timezone.utc)


def make_snapshot() -> StatusSnapshot:
    events = (
        CalendarEvent(summary="140.4.0esr release", start=ESR_DATE),
        CalendarEvent(summary="Thunderbird 144 Release", start=RELEASE_DATE),
    )
    desktop = {
        "release": ChannelRecord("144.0.1", RELEASE_DATE, "Thunderbird 144 Release"),
        "beta": ChannelRecord("145.0b3"),
        "daily": ChannelRecord("146.0a1", RELEASE_DATE, "Thunderbird 144 Release"),
        "esr_current": ChannelRecord("140.4.0esr", ESR_DATE, "140.4.0esr release"),
        "esr_next": ChannelRecord(),
    }
    android = {
        "release": ChannelRecord("12.1"),
        "beta": ChannelRecord("13.0b2"),
        "daily": ChannelRecord("146.0a1"),
    }
    return StatusSnapshot(
        fetched_at=datetime(2025, 10, 8, 12, 0, tzinfo=timezone.utc),
        channels=MappingProxyType({"desktop": MappingProxyType(desktop), "android": MappingProxyType(android)}),
        events=events,
    )


def wide_console() -> None:
    """Render tables without wrapping so assertions can match whole cells."""
    patch("train_tracker.console.console", Console(theme=custom_theme, width=200)).start()


class TestCLIHelp(unittest.TestCase):
    """Test CLI help and version options."""

    def setUp(self):
        self.runner = CliRunner()

    def test_help_option(self):
        result = self.runner.invoke(cli, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("status", result.output)
        self.assertIn("watch", result.output)

    def test_short_help_option(self):
        result = self.runner.invoke(cli, ["-h"])
        self.assertEqual(result.exit_code, 0)

    def test_version_option(self):
        result = self.runner.invoke(cli, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)


class TestStatusCommand(unittest.TestCase):
    """Test the status command."""

    def setUp(self):
        self.runner = CliRunner()
        wide_console()
        self.addCleanup(patch.stopall)

    @patch.object(cli_main_module, "fetch_snapshot")
    def test_json_output(self, mock_fetch):
        mock_fetch.return_value = make_snapshot()

        result = self.runner.invoke(cli, ["status", "--json"])

        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["fetchedAt"], "2025-10-08T12:00:00.000Z")
        self.assertEqual(
            data["channels"]["desktop"]["release"],
            {
                "version": "144.0.1",
                "milestone": "2025-10-14T16:00:00.000Z",
                "eventSummary": "Thunderbird 144 Release",
            },
        )
        self.assertIsNone(data["channels"]["desktop"]["esr_next"]["version"])
        self.assertEqual(len(data["events"]), 2)

    @patch.object(cli_main_module, "fetch_snapshot")
    def test_table_output(self, mock_fetch):
        mock_fetch.return_value = make_snapshot()

        result = self.runner.invoke(cli, ["status"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Desktop", result.output)
        self.assertIn("Android", result.output)
        self.assertIn("144.0.1", result.output)
        self.assertIn("Thunderbird 144 Release", result.output)
        # No next ESR: the next-ESR row is hidden
        self.assertNotIn("ESR (next)", result.output)

    @patch.object(cli_main_module, "fetch_snapshot")
    def test_milestone_table(self, mock_fetch):
        mock_fetch.return_value = make_snapshot()

        result = self.runner.invoke(cli, ["status", "--milestones", "desktop/esr_current"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("140.4.0esr release", result.output)

    @patch.object(cli_main_module, "fetch_snapshot")
    def test_mobile_milestone_table(self, mock_fetch):
        mock_fetch.return_value = make_snapshot()

        result = self.runner.invoke(cli, ["status", "--milestones", "android/beta"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("13.0b2", result.output)
        self.assertIn("no matching milestones", result.output)

    @patch.object(cli_main_module, "fetch_snapshot")
    def test_milestone_channel_without_track(self, mock_fetch):
        result = self.runner.invoke(cli, ["status", "--milestones", "android"])

        self.assertEqual(result.exit_code, 2)
        self.assertEqual(result.output.count("Unknown channel"), 1)
        mock_fetch.assert_not_called()

    @patch.object(cli_main_module, "fetch_snapshot")
    def test_unknown_milestone_channel(self, mock_fetch):
        result = self.runner.invoke(cli, ["status", "--milestones", "desktop/aurora"])

        self.assertEqual(result.exit_code, 2)
        self.assertIn("Unknown channel", result.output)
        mock_fetch.assert_not_called()

    @patch.object(cli_main_module, "fetch_snapshot")
    def test_upstream_failure(self, mock_fetch):
        mock_fetch.side_effect = UpstreamFetchError("calendar", "HTTP 503", status_code=503)

        result = self.runner.invoke(cli, ["status"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error loading status", result.output)
        self.assertIn("calendar: HTTP 503", result.output)

    @patch.object(cli_main_module, "fetch_snapshot")
    def test_upstream_failure_json(self, mock_fetch):
        mock_fetch.side_effect = UpstreamFetchError("calendar", 'bad "quote"')

        result = self.runner.invoke(cli, ["status", "--json"])

        self.assertEqual(result.exit_code, 1)
        data = json.loads(result.output)
        self.assertEqual(data["error"], "Failed to fetch status")
        self.assertEqual(data["detail"], 'calendar: bad "quote"')

    @patch.object(cli_main_module, "fetch_snapshot")
    def test_invalid_configuration(self, mock_fetch):
        result = self.runner.invoke(cli, ["status"], env={"CALENDAR_URL": "not-a-url"})

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Configuration error", result.output)
        mock_fetch.assert_not_called()


class TestWatchCommand(unittest.TestCase):
    """Test the watch command."""

    def setUp(self):
        self.runner = CliRunner()
        wide_console()
        self.addCleanup(patch.stopall)

    @patch.object(cli_main_module.time, "sleep")
    @patch.object(cli_main_module, "fetch_snapshot")
    def test_stops_after_count(self, mock_fetch, mock_sleep):
        mock_fetch.return_value = make_snapshot()

        result = self.runner.invoke(cli, ["watch", "--count", "2", "--interval", "5"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(mock_fetch.call_count, 2)
        mock_sleep.assert_called_once_with(5.0)

    @patch.object(cli_main_module.time, "sleep")
    @patch.object(cli_main_module, "fetch_snapshot")
    def test_failed_refresh_is_shown_inline(self, mock_fetch, mock_sleep):
        mock_fetch.side_effect = [UpstreamFetchError("product-details", "HTTP 500"), make_snapshot()]

        result = self.runner.invoke(cli, ["watch", "--count", "2"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Error loading status: product-details: HTTP 500", result.output)
        self.assertIn("144.0.1", result.output)

    def test_interval_minimum(self):
        result = self.runner.invoke(cli, ["watch", "--interval", "0.5", "--count", "1"])

        self.assertEqual(result.exit_code, 2)


class TestLoggingOptions(unittest.TestCase):
    """Test the group-level logging options."""

    def setUp(self):
        self.runner = CliRunner()

    @patch.object(cli_main_module, "setup_logging")
    @patch.object(cli_main_module, "fetch_snapshot")
    def test_structured_logs_flag(self, mock_fetch, mock_setup):
        mock_fetch.return_value = make_snapshot()

        result = self.runner.invoke(cli, ["--log-level", "debug", "--structured-logs", "status", "--json"])

        self.assertEqual(result.exit_code, 0, result.output)
        mock_setup.assert_called_once_with("DEBUG", structured=True)

    @patch.object(cli_main_module, "setup_logging")
    @patch.object(cli_main_module, "fetch_snapshot")
    def test_log_format_env(self, mock_fetch, mock_setup):
        mock_fetch.return_value = make_snapshot()

        result = self.runner.invoke(cli, ["status", "--json"], env={"LOG_FORMAT": "json", "LOG_LEVEL": "INFO"})

        self.assertEqual(result.exit_code, 0, result.output)
        mock_setup.assert_called_once_with("INFO", structured=True)
