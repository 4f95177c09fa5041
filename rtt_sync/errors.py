"""Exceptions raised by the RTT config sync core."""
from __future__ import annotations

from pathlib import Path


class RttSyncError(Exception):
    """Base class for hard failures surfaced to the host."""


class ConfigWriteError(RttSyncError):
    """Writing or backing up the RTT client configuration failed."""

    def __init__(self, path: Path, cause: OSError) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to write RTT configuration '{self.path}': {cause}")
