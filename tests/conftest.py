from __future__ import annotations

import logging

import pytest

from rtt_sync.logging_utils import LOGGER_NAME


@pytest.fixture(autouse=True)
def _propagate_rtt_logs(monkeypatch):
    """Let caplog see records even after the entry module detached the shared logger."""
    monkeypatch.setattr(logging.getLogger(LOGGER_NAME), "propagate", True)
