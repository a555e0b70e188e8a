"""Custom exceptions for train-tracker."""

from typing import Optional


class TrainTrackerError(Exception):
    """Base exception for all train-tracker operations."""


class ConfigurationError(TrainTrackerError):
    """Raised when configuration validation fails."""


class UpstreamFetchError(TrainTrackerError):
    """Raised when an upstream data provider fails or returns a non-success status."""

    def __init__(self, source: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.status_code = status_code
