from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

LOGGER_NAME = "FalconRTT"
LOG_LEVEL_ENV_VAR = "RTT_SYNC_LOG_LEVEL"
DEFAULT_LOG_LEVEL = logging.INFO

CONSOLE_LOG_FORMAT = f"[%(asctime)s] [{LOGGER_NAME}] %(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DIRNAME = "logs"
LOG_FILENAME = "rtt_sync.log"
LOG_RETENTION = 3
LOG_MAX_BYTES = 512 * 1024

# spellings accepted in RTT_SYNC_LOG_LEVEL beyond the names logging knows
_LEVEL_ALIASES = {
    "WARN": logging.WARNING,
    "FATAL": logging.CRITICAL,
    "TRACE": logging.DEBUG,
}


def coerce_level(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw
    if not isinstance(raw, str):
        return None
    token = raw.strip().upper()
    if token.isdigit():
        return int(token)
    if token in _LEVEL_ALIASES:
        return _LEVEL_ALIASES[token]
    level = logging.getLevelName(token)
    return level if isinstance(level, int) else None


def resolve_log_level(explicit: Any = None) -> int:
    for candidate in (coerce_level(explicit), coerce_level(os.getenv(LOG_LEVEL_ENV_VAR))):
        if candidate is not None and candidate != logging.NOTSET:
            return candidate
    return DEFAULT_LOG_LEVEL


def configure_logger(level: Any = None) -> logging.Logger:
    """Set up the shared ``FalconRTT`` logger once; later calls only adjust the level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_log_level(level))
    if not any(getattr(handler, "_rtt_handler", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler._rtt_handler = True  # type: ignore[attr-defined]
        handler.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT, "%H:%M:%S"))
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def build_rotating_log_handler(
    host_dir: Path,
    *,
    filename: str = LOG_FILENAME,
    retention: int = LOG_RETENTION,
    max_bytes: int = LOG_MAX_BYTES,
) -> logging.Handler:
    """Rotating debug log under ``<host_dir>/logs``; ``retention`` counts the live file."""
    log_dir = Path(host_dir) / LOG_DIRNAME
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=max(0, retention - 1),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    handler.setLevel(logging.DEBUG)
    return handler
