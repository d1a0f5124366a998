"""
Structured Logging Utilities

Centralizes logging setup for the ConfigSpec package: a console handler with a
plain format by default, or JSON lines for machine consumption. Handlers added
here are tagged so repeated setup replaces them instead of stacking duplicates.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Optional

PACKAGE_LOGGER = "ConfigSpec"


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record.

    Examples:
        >>> formatter = JSONFormatter()
        >>> isinstance(formatter.format(logging.makeLogRecord({'msg': 'test'})), str)
        True
    """

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc)
        log_obj = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            log_obj.update(record.extra_fields)
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


def setup_logging(
    level: str = "WARNING",
    *,
    json_lines: bool = False,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Logging level name (``DEBUG``, ``INFO`` ...).
        json_lines: Emit JSON records instead of ``LEVEL: message`` lines.
        stream: Destination stream (default: ``sys.stderr``).

    Returns:
        The configured ``ConfigSpec`` logger.

    Examples:
        >>> setup_logging("INFO").name
        'ConfigSpec'
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    for handler in list(logger.handlers):
        if getattr(handler, "_configspec_managed", False):
            logger.removeHandler(handler)
            handler.close()

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_lines:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    handler._configspec_managed = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = True
    return logger


__all__ = ["JSONFormatter", "setup_logging"]
