"""Severity-tagged diagnostics shown by the host's ready check and status report."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional


class Severity(enum.IntEnum):
    INFO = 0
    WARNING = 1
    ERROR = 2


class StatusFlags(enum.Flag):
    NONE = 0
    CONFIGURATION_UP_TO_DATE = enum.auto()
    VERBOSE = enum.auto()


@dataclass(frozen=True)
class StatusReportItem:
    """One diagnostic line; ``recommendation`` tells the user what to do about it."""

    status: str
    recommendation: Optional[str] = None
    severity: Severity = Severity.INFO
    flags: StatusFlags = StatusFlags.NONE


def blocks_ready(items: Iterable[StatusReportItem]) -> bool:
    """Return True when any item must stop the host from running the profile."""
    return any(item.severity is Severity.ERROR for item in items)

