"""
Logging setup for the card recommender.

Call ``configure_logging(config)`` once at CLI entry. Library modules only
use ``logging.getLogger(__name__)`` and never configure handlers.

Handlers
--------
console : stderr. stdout carries the CLI's JSON output and must stay parseable.
file    : ``[logging] log_file``, parent directories created on demand.

Both share one formatter. Timestamps are UTC in either format.

JSON format (``json_format = true`` under ``[logging]``) emits one object
per line; ``extra=`` fields such as ``card_id`` land at the top level::

    {"ts": "2026-10-19T15:00:00Z", "level": "ERROR", "logger": "...",
     "msg": "Evaluation failed for card ...", "card_id": "amex-gold"}
"""

from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from card_recommender.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Chatty per-request loggers of the HTTP catalog client
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")

_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime"}


class _UtcFormatter(logging.Formatter):
    converter = time.gmtime


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Attributes added through ``extra=``, in insertion order."""
    return {
        key: val
        for key, val in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class _JsonFormatter(_UtcFormatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg``,
    ``exc`` when an exception is attached, then any ``extra=`` fields."""

    def __init__(self) -> None:
        super().__init__(datefmt=LOG_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        payload.update(extra_fields(record))
        return json.dumps(payload, default=str)


def build_formatter(config: "LoggingConfig") -> logging.Formatter:
    if config.json_format:
        return _JsonFormatter()
    return _UtcFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def build_handlers(config: "LoggingConfig", level: int) -> list[logging.Handler]:
    """Console handler on stderr, plus a file handler when ``log_file`` is set."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    formatter = build_formatter(config)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def configure_logging(config: "LoggingConfig") -> None:
    """Replace the root logger's handlers according to ``config``."""
    level = getattr(logging, config.level.upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=build_handlers(config, level), force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
