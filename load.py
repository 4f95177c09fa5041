"""Primary entry point the host application uses to drive RTT configuration sync."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from rtt_sync import __version__ as RTT_SYNC_VERSION
from rtt_sync.displays import ViewportRegion
from rtt_sync.errors import ConfigWriteError
from rtt_sync.generator import RttConfigGenerator
from rtt_sync.logging_utils import build_rotating_log_handler, configure_logger
from rtt_sync.ownership import OwnershipState
from rtt_sync.preferences import SettingsStore
from rtt_sync.prompts import ConsentPrompter, tk_consent_prompter
from rtt_sync.status import StatusReportItem, blocks_ready

INTERFACE_NAME = "Falcon-RTT"
INTERFACE_VERSION = RTT_SYNC_VERSION

LOGGER = configure_logger()


def _log(message: str) -> None:
    LOGGER.info(message)


class _InterfaceRuntime:
    """Owns the generator and settings for one host profile."""

    def __init__(self, host_dir: Path, store: Optional[SettingsStore] = None, **generator_kwargs: Any) -> None:
        self.host_dir = Path(host_dir)
        self.store = store or SettingsStore(self.host_dir)
        self.settings = self.store.load()
        self.generator = RttConfigGenerator(self.settings, **generator_kwargs)
        self.generator.add_listener(self._on_generator_changed)
        self._running = False
        self._log_handler: Optional[logging.Handler] = None

    # Lifecycle ------------------------------------------------------------

    def start(self, *, log_to_file: bool = False) -> str:
        if log_to_file and self._log_handler is None:
            self._log_handler = build_rotating_log_handler(self.host_dir)
            LOGGER.addHandler(self._log_handler)
        self.generator.on_loaded()
        LOGGER.debug("RTT configuration state after load: %s", self.generator.state.value)
        return INTERFACE_NAME

    def stop(self) -> None:
        if self._running:
            self.profile_stopped()
        self.generator.remove_listener(self._on_generator_changed)
        self.generator.close()
        if self._log_handler is not None:
            LOGGER.removeHandler(self._log_handler)
            self._log_handler.close()
            self._log_handler = None

    def profile_started(self) -> None:
        self._running = True
        try:
            self.generator.on_profile_start()
        except ConfigWriteError as exc:
            self._running = False
            LOGGER.error("Profile start aborted: %s", exc)
            raise

    def profile_tick(self, viewports: Iterable[ViewportRegion]) -> None:
        self.generator.update(viewports)

    def profile_stopped(self) -> None:
        self._running = False
        self.generator.on_profile_stop()

    def ready_check(self) -> List[StatusReportItem]:
        items = self.generator.on_ready_check()
        if blocks_ready(items):
            LOGGER.debug("RTT ready check reported blocking problems")
        return items

    def status_report(self) -> List[StatusReportItem]:
        return self.generator.on_status_report()

    def enable_rtt(self, prompter: ConsentPrompter) -> OwnershipState:
        return self.generator.on_interactively_enabled(prompter)

    def disable_rtt(self) -> OwnershipState:
        return self.generator.disable()

    def save(self) -> None:
        try:
            self.store.save(self.settings)
        except OSError as exc:
            LOGGER.warning("Failed to save RTT settings to %s: %s", self.store.path, exc)

    def _on_generator_changed(self, event: object) -> None:
        self.save()


# Host hook functions -------------------------------------------------------

_runtime: Optional[_InterfaceRuntime] = None


def interface_start(host_dir: str, *, log_to_file: bool = False) -> str:
    global _runtime
    _log(f"Initialising RTT configuration sync {INTERFACE_VERSION} from {host_dir}")
    _runtime = _InterfaceRuntime(Path(host_dir))
    return _runtime.start(log_to_file=log_to_file)


def interface_stop() -> None:
    global _runtime
    if _runtime:
        try:
            _runtime.stop()
        finally:
            _runtime = None


def profile_started() -> None:
    if _runtime:
        _runtime.profile_started()


def profile_tick(viewports: Iterable[ViewportRegion]) -> None:
    if _runtime:
        _runtime.profile_tick(viewports)


def profile_stopped() -> None:
    if _runtime:
        _runtime.profile_stopped()


def ready_check() -> List[StatusReportItem]:
    if _runtime is None:
        return []
    return _runtime.ready_check()


def status_report() -> List[StatusReportItem]:
    if _runtime is None:
        return []
    return _runtime.status_report()


def enable_rtt(prompter: Optional[ConsentPrompter] = None) -> Optional[OwnershipState]:
    if _runtime is None:
        return None
    return _runtime.enable_rtt(prompter or tk_consent_prompter)


def disable_rtt() -> Optional[OwnershipState]:
    if _runtime is None:
        return None
    return _runtime.disable_rtt()


name = INTERFACE_NAME
version = INTERFACE_VERSION
