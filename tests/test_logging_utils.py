from __future__ import annotations

import logging

import pytest

from rtt_sync import logging_utils
from rtt_sync.logging_utils import LOG_LEVEL_ENV_VAR, configure_logger, resolve_log_level


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("debug", logging.DEBUG),
        ("WARN", logging.WARNING),
        ("trace", logging.DEBUG),
        ("15", 15),
        (logging.ERROR, logging.ERROR),
        ("critical", logging.CRITICAL),
        ("nonsense", None),
        (None, None),
    ],
)
def test_coerce_level(raw, expected):
    assert logging_utils.coerce_level(raw) == expected


def test_env_level_used_when_not_explicit(monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "error")

    assert resolve_log_level() == logging.ERROR
    assert resolve_log_level("debug") == logging.DEBUG


def test_default_level_without_override(monkeypatch):
    monkeypatch.delenv(LOG_LEVEL_ENV_VAR, raising=False)

    assert resolve_log_level("bogus") == logging.INFO


def test_configure_logger_is_idempotent(monkeypatch):
    logger = logging.getLogger(logging_utils.LOGGER_NAME)
    monkeypatch.setattr(logger, "handlers", [])
    monkeypatch.setattr(logger, "level", logger.level)

    configure_logger("debug")
    configure_logger("info")

    marked = [handler for handler in logger.handlers if getattr(handler, "_rtt_handler", False)]
    assert len(marked) == 1
    assert logger.level == logging.INFO


def test_rotating_handler_writes_under_host_logs(tmp_path):
    handler = logging_utils.build_rotating_log_handler(tmp_path, filename="rtt.log", retention=3, max_bytes=1024)
    try:
        assert handler.backupCount == 2
        assert handler.level == logging.DEBUG
        assert handler.formatter._fmt == logging_utils.FILE_LOG_FORMAT
        assert (tmp_path / "logs" / "rtt.log").exists()
    finally:
        handler.close()
