"""Conditional writer that keeps RTTClient.ini in step with the generated content."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .ownership import OwnershipState
from .target_file import TargetKind, inspect_target, write_config

LOGGER = logging.getLogger("FalconRTT.file_sync")


class SyncOutcome(enum.Enum):
    UPDATED = "updated"
    UP_TO_DATE = "up_to_date"
    REFUSED = "refused"
    FAILED = "failed"


class RefusalReason(enum.Enum):
    AWAITING_CONSENT = "awaiting_consent"
    MISSING_PREREQUISITE = "missing_prerequisite"
    NOT_OWNED = "not_owned"


@dataclass(frozen=True)
class SyncResult:
    outcome: SyncOutcome
    path: Optional[Path]
    reason: Optional[RefusalReason] = None
    error: Optional[OSError] = None

    @property
    def ok(self) -> bool:
        """True when the file on disk now holds the generated content."""
        return self.outcome in (SyncOutcome.UPDATED, SyncOutcome.UP_TO_DATE)


def sync(
    path: Path,
    content: str,
    *,
    state: OwnershipState,
    required_dir: Optional[Path],
) -> SyncResult:
    """Write ``content`` to ``path`` unless that would be unsafe or pointless."""

    path = Path(path)
    if state is OwnershipState.AWAITING_CONSENT:
        LOGGER.debug("Not writing RTT configuration while waiting for consent to replace %s", path)
        return SyncResult(SyncOutcome.REFUSED, path, reason=RefusalReason.AWAITING_CONSENT)

    if required_dir is None or not Path(required_dir).is_dir():
        LOGGER.debug("Not writing RTT configuration; required directory %s is missing", required_dir)
        return SyncResult(SyncOutcome.REFUSED, path, reason=RefusalReason.MISSING_PREREQUISITE)

    inspection = inspect_target(path)
    if inspection.matches(content):
        LOGGER.debug("Not writing unchanged RTT configuration to disk")
        return SyncResult(SyncOutcome.UP_TO_DATE, path)

    if inspection.kind is TargetKind.FOREIGN:
        LOGGER.warning("Refusing to overwrite RTT configuration %s that we did not write", path)
        return SyncResult(SyncOutcome.REFUSED, path, reason=RefusalReason.NOT_OWNED)

    try:
        write_config(path, content)
    except OSError as exc:
        LOGGER.error("Failed to write RTT configuration %s: %s", path, exc)
        return SyncResult(SyncOutcome.FAILED, path, error=exc)
    LOGGER.info("Updated RTT configuration %s", path)
    return SyncResult(SyncOutcome.UPDATED, path)
