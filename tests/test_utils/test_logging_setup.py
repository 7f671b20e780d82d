"""
Tests for card_recommender/utils/logging.py.

What we test
------------
  - JSON lines carry ts/level/logger/msg plus extra= fields, never the
    standard LogRecord attributes.
  - Timestamps are UTC in both formats.
  - The console handler writes to stderr; log_file adds a file handler.
  - The configured level reaches the root logger; HTTP client loggers
    stay at WARNING or above.
"""

from __future__ import annotations

import json
import logging
import sys

import pytest

from card_recommender.config import LoggingConfig
from card_recommender.utils.logging import (
    LOG_DATE_FORMAT,
    QUIET_LOGGERS,
    _JsonFormatter,
    build_formatter,
    build_handlers,
    configure_logging,
    extra_fields,
)

# 2026-01-02T03:04:05Z
_CREATED = 1767323045.0


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    quiet = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, lvl in quiet.items():
        logging.getLogger(name).setLevel(lvl)


def _record(msg: str = "hello %s", args=("world",), **extra) -> logging.LogRecord:
    record = logging.LogRecord("card_recommender.test", logging.INFO, __file__, 10, msg, args, None)
    record.created = _CREATED
    for key, val in extra.items():
        setattr(record, key, val)
    return record


# ── Formatters ────────────────────────────────────────────────────────────────

class TestJsonFormatter:
    def test_basic_fields(self):
        payload = json.loads(_JsonFormatter().format(_record()))
        assert payload == {
            "ts": "2026-01-02T03:04:05Z",
            "level": "INFO",
            "logger": "card_recommender.test",
            "msg": "hello world",
        }

    def test_extra_fields_included(self):
        payload = json.loads(_JsonFormatter().format(_record(card_id="amex-gold", cards=9)))
        assert payload["card_id"] == "amex-gold"
        assert payload["cards"] == 9
        assert "args" not in payload
        assert "lineno" not in payload

    def test_exception_text(self):
        try:
            raise ZeroDivisionError("corrupt row")
        except ZeroDivisionError:
            record = _record()
            record.exc_info = sys.exc_info()
        payload = json.loads(_JsonFormatter().format(record))
        assert "ZeroDivisionError: corrupt row" in payload["exc"]

    def test_extra_fields_helper(self):
        assert extra_fields(_record()) == {}
        assert extra_fields(_record(card_id="x", _private=1)) == {"card_id": "x"}


class TestPlainFormatter:
    def test_utc_timestamp(self):
        formatter = build_formatter(LoggingConfig(json_format=False))
        line = formatter.format(_record())
        assert line == "2026-01-02T03:04:05Z [INFO] card_recommender.test: hello world"
        assert formatter.datefmt == LOG_DATE_FORMAT

    def test_json_selected(self):
        assert isinstance(build_formatter(LoggingConfig(json_format=True)), _JsonFormatter)


# ── Handlers and root configuration ───────────────────────────────────────────

class TestConfigureLogging:
    def test_console_on_stderr(self):
        (console,) = build_handlers(LoggingConfig(log_file=None), logging.INFO)
        assert isinstance(console, logging.StreamHandler)
        assert console.stream is sys.stderr
        assert console.level == logging.INFO

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        configure_logging(LoggingConfig(level="INFO", log_file=str(log_file), json_format=True))
        logging.getLogger("card_recommender.test").info("written %d", 1)
        for handler in logging.getLogger().handlers:
            handler.flush()
        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["msg"] == "written 1"

    def test_level_applied(self):
        configure_logging(LoggingConfig(level="WARNING", log_file=None))
        assert logging.getLogger().level == logging.WARNING

    def test_http_loggers_quietened(self):
        configure_logging(LoggingConfig(level="DEBUG", log_file=None))
        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
        configure_logging(LoggingConfig(level="ERROR", log_file=None))
        assert logging.getLogger("httpx").level == logging.ERROR
