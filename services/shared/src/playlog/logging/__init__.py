"""Structured logging: JSON formatter and setup."""

from playlog.logging.formatter import JSONLogFormatter
from playlog.logging.setup import configure_logging

__all__ = ["JSONLogFormatter", "configure_logging"]
