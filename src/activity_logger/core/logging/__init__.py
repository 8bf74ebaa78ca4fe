"""Logging module with structured logging."""

from activity_logger.core.logging.config import configure_logging


__all__ = [
    "configure_logging",
]
