"""Root logger configuration shared by the API and collector processes."""

import logging
import sys

from playlog.constants import ServiceName
from playlog.logging.formatter import JSONLogFormatter


def configure_logging(service: ServiceName = ServiceName.API, level: int | str = logging.INFO) -> None:
    """Set up structured JSON logging on the root logger."""
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONLogFormatter(service=service))
    root.addHandler(handler)
