"""Command-line interface for train-tracker."""

from .main import cli, main

__all__ = ["cli", "main"]
