"""Logging configuration for train-tracker."""

import logging
import sys
from typing import Any, Dict


def setup_logging(level: str = "INFO", structured: bool = False) -> logging.Logger:
    """
    Set up logging configuration.

    Calling this again on an already configured logger only updates the level
    and formatter, so the CLI can apply its options after the module-level
    logger exists.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Whether to use structured JSON logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("train_tracker")
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = _build_formatter(structured)

    # Avoid duplicate handlers
    if logger.handlers:
        logger.setLevel(numeric_level)
        for existing in logger.handlers:
            existing.setLevel(numeric_level)
            existing.setFormatter(formatter)
        return logger

    logger.setLevel(numeric_level)

    # Logs go to stderr so that `status --json` output stays parseable
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def _build_formatter(structured: bool) -> logging.Formatter:
    if structured:
        return StructuredFormatter()
    return logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        import json
        from datetime import datetime

        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


# Global logger instance
logger = setup_logging("WARNING")
