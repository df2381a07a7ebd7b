"""Logging setup for gemini-nanobanana-mcp.

All log output goes to stderr. When the server runs over stdio, stdout carries
the MCP protocol stream and must stay clean.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from rich.console import Console
from rich.logging import RichHandler

from gemini_nanobanana.config.constants import CANONICAL_ID

_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

# Attributes every LogRecord has; anything else came in through ``extra=``.
_RESERVED = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

PACKAGE_LOGGER = "gemini_nanobanana"


class JsonFormatter(logging.Formatter):
    """One JSON object per line with the record's ``extra`` context merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": CANONICAL_ID,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def resolve_level(level: str | int) -> int:
    """Map a level name such as ``"warn"`` to a logging level, defaulting to INFO."""
    if isinstance(level, int):
        return level
    return _LEVELS.get(level.strip().lower(), logging.INFO)


def setup_logging(level: str | int = "info", fmt: str = "rich") -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Level name (error, warn, info, debug) or a logging level int.
        fmt: ``"rich"`` for human-readable output, ``"json"`` for JSON lines.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolve_level(level))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if fmt == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger for a module."""
    return logging.getLogger(name)
