"""Ownership and consent state machine guarding the RTT client config file.

The synchronizer may only overwrite a file that it wrote itself (detected by the
ownership marker) or a file the user explicitly handed over. Handing over a
foreign file renames it to a ``.original`` backup first.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .errors import ConfigWriteError
from .target_file import TargetInspection, TargetKind, backup_path_for, inspect_target, write_config

LOGGER = logging.getLogger("FalconRTT.ownership")


class OwnershipState(enum.Enum):
    DISABLED = "disabled"
    ENABLED = "enabled"
    AWAITING_CONSENT = "awaiting_consent"


@dataclass(frozen=True)
class StateChanged:
    old: OwnershipState
    new: OwnershipState
    reason: str


StateListener = Callable[[StateChanged], None]


class OwnershipStateMachine:
    """Tracks whether we govern the target file.

    ``AWAITING_CONSENT`` is only left through :meth:`grant_consent` (to
    ``ENABLED``) or :meth:`decline_consent` / :meth:`disable` (to ``DISABLED``).
    """

    def __init__(self, enabled: bool = False, awaiting_consent: bool = False) -> None:
        if awaiting_consent:
            self._state = OwnershipState.AWAITING_CONSENT
        elif enabled:
            self._state = OwnershipState.ENABLED
        else:
            self._state = OwnershipState.DISABLED
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> OwnershipState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self._state is OwnershipState.ENABLED

    @property
    def awaiting_consent(self) -> bool:
        return self._state is OwnershipState.AWAITING_CONSENT

    def add_listener(self, listener: StateListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # Transitions ----------------------------------------------------------

    def enable(self) -> bool:
        if self._state is OwnershipState.AWAITING_CONSENT:
            LOGGER.debug("Ignoring enable request while waiting for consent to take over RTT configuration")
            return False
        self._transition(OwnershipState.ENABLED, "enabled")
        return True

    def disable(self) -> None:
        self._transition(OwnershipState.DISABLED, "disabled")

    def suspend_for_consent(self, path: Path) -> None:
        if self._state is not OwnershipState.ENABLED:
            return
        LOGGER.warning(
            "RTT configuration '%s' was not written by us; suspending until the user allows us to replace it",
            path,
        )
        self._transition(OwnershipState.AWAITING_CONSENT, f"foreign file at {path}")

    def check_target(self, path: Path) -> TargetInspection:
        """Inspect the target and suspend when it holds a foreign, non-empty file."""
        inspection = inspect_target(path)
        if inspection.kind is TargetKind.FOREIGN:
            self.suspend_for_consent(path)
        return inspection

    def grant_consent(self, path: Path, content: str) -> Optional[Path]:
        """Take over ``path``, returning the backup location if a file was moved aside."""
        path = Path(path)
        inspection = inspect_target(path)
        if inspection.kind in (TargetKind.MISSING, TargetKind.EMPTY, TargetKind.OWNED):
            self._transition(OwnershipState.ENABLED, "consent not required")
            return None
        if inspection.kind is TargetKind.INVALID:
            raise ConfigWriteError(path, OSError(inspection.error or "target path is not a regular file"))
        backup = backup_path_for(path)
        try:
            path.rename(backup)
        except OSError as exc:
            LOGGER.error("Failed to back up RTT configuration %s to %s: %s", path, backup, exc)
            raise ConfigWriteError(path, exc) from exc
        LOGGER.info("Backed up existing RTT configuration %s to %s", path, backup)
        try:
            write_config(path, content)
        except OSError as exc:
            LOGGER.error("Failed to write RTT configuration %s after backup: %s", path, exc)
            self._restore_backup(backup, path)
            raise ConfigWriteError(path, exc) from exc
        self._transition(OwnershipState.ENABLED, "consent granted")
        return backup

    def _restore_backup(self, backup: Path, path: Path) -> None:
        # a partial write may have left a file at the target
        try:
            if path.exists():
                path.unlink()
            backup.rename(path)
        except OSError as exc:
            LOGGER.error("Could not restore RTT configuration %s from %s: %s", path, backup, exc)
            return
        LOGGER.info("Restored previous RTT configuration %s from %s", path, backup)

    def decline_consent(self) -> None:
        self._transition(OwnershipState.DISABLED, "consent declined")

    def _transition(self, new: OwnershipState, reason: str) -> None:
        old = self._state
        if old is new:
            return
        self._state = new
        LOGGER.info("RTT configuration state %s -> %s (%s)", old.value, new.value, reason)
        event = StateChanged(old, new, reason)
        for listener in tuple(self._listeners):
            listener(event)
