"""Host-facing RTT configuration synchronizer.

The host calls :meth:`RttConfigGenerator.update` whenever its viewports may have
changed and the ``on_*`` hooks as its profile loads, starts and stops. All calls
run synchronously on the host's thread.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Tuple, Union

from . import runtime_services
from .displays import SUPPORTED_CHANNELS, ViewportRegion, resolve
from .falcon_install import FALCON_PATH_ENV_VAR, RttPaths, resolve_rtt_paths
from .file_sync import SyncResult
from .options import OptionChanged, coerce_int
from .ownership import OwnershipState, OwnershipStateMachine, StateChanged
from .preferences import RENDERER_MAX, RENDERER_MIN, RttSettings
from .process_control import RttProcessController
from .prompts import ConsentAnswer, ConsentPrompter
from .serializer import render, serialize
from .status import Severity, StatusFlags, StatusReportItem
from .target_file import TargetKind, inspect_target

LOGGER = logging.getLogger("FalconRTT.generator")

ChangeEvent = Union[OptionChanged, StateChanged]
ChangeListener = Callable[[ChangeEvent], None]
PathsProvider = Callable[[], Optional[RttPaths]]

CONSENT_TITLE = "Replace RTT Client Configuration"


class RttConfigGenerator:
    """Keeps RTTClient.ini in step with the host's viewports."""

    def __init__(
        self,
        settings: Optional[RttSettings] = None,
        *,
        paths_provider: Optional[PathsProvider] = None,
        process_controller: Optional[RttProcessController] = None,
    ) -> None:
        self.settings = settings or RttSettings()
        self.ownership = OwnershipStateMachine(
            enabled=self.settings.enabled,
            awaiting_consent=self.settings.awaiting_consent,
        )
        self.process_controller = process_controller or RttProcessController(self.settings.process_control)
        self._paths_provider: PathsProvider = paths_provider or (
            lambda: resolve_rtt_paths(self.settings.falcon_version)
        )
        self._listeners: List[ChangeListener] = []
        self._viewports: Tuple[ViewportRegion, ...] = ()
        self._lines: List[str] = []
        self.ownership.add_listener(self._on_state_changed)
        for group in (self.settings.local, self.settings.network, self.settings.process_control):
            group.add_listener(self._on_option_changed)
        self._regenerate()

    # Generated content ----------------------------------------------------

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    @property
    def contents(self) -> str:
        return render(self._lines)

    @property
    def state(self) -> OwnershipState:
        return self.ownership.state

    def update(self, viewports: Iterable[ViewportRegion]) -> None:
        """Regenerate the in-memory configuration; never touches the disk."""
        self._viewports = tuple(viewports)
        LOGGER.debug("RTT geometry update due to possible change in viewports")
        self._regenerate()

    def _regenerate(self) -> None:
        resolved = resolve(self._viewports)
        self._lines = serialize(self.settings.global_options(), resolved, SUPPORTED_CHANNELS)

    # Global settings ------------------------------------------------------

    @property
    def renderer(self) -> int:
        return self.settings.renderer

    @renderer.setter
    def renderer(self, value: int) -> None:
        self._set_global("renderer", coerce_int(value, self.settings.renderer, RENDERER_MIN, RENDERER_MAX))

    @property
    def networked(self) -> bool:
        return self.settings.networked

    @networked.setter
    def networked(self, value: bool) -> None:
        self._set_global("networked", bool(value))

    def _set_global(self, name: str, value) -> None:
        old = getattr(self.settings, name)
        if old == value:
            return
        setattr(self.settings, name, value)
        self._on_option_changed(OptionChanged("rtt", name, old, value))

    # Listeners ------------------------------------------------------------

    def add_listener(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: ChangeEvent) -> None:
        for listener in tuple(self._listeners):
            listener(event)

    def _on_option_changed(self, event: OptionChanged) -> None:
        LOGGER.debug("RTT option %s.%s changed from %r to %r", event.group, event.name, event.old, event.new)
        self._regenerate()
        self._notify(event)

    def _on_state_changed(self, event: StateChanged) -> None:
        self.settings.enabled = event.new is OwnershipState.ENABLED
        self.settings.awaiting_consent = event.new is OwnershipState.AWAITING_CONSENT
        self._notify(event)

    # Host lifecycle hooks -------------------------------------------------

    def on_loaded(self) -> None:
        """Fix up the ownership state once persisted settings are attached to a profile."""
        if not self.ownership.enabled:
            return
        paths = self._current_paths()
        if paths is None:
            return
        self.ownership.check_target(paths.config_file)

    def on_profile_start(self) -> Optional[SyncResult]:
        return runtime_services.start_runtime_services(self, LOGGER)

    def on_profile_stop(self) -> None:
        runtime_services.stop_runtime_services(self, LOGGER)

    def on_interactively_enabled(self, prompter: ConsentPrompter) -> OwnershipState:
        """Turn the feature on at the user's request, asking before replacing a foreign file."""
        paths = self._current_paths()
        if paths is None:
            LOGGER.warning("Cannot check RTT configuration ownership without a Falcon installation")
            if not self.ownership.enable():
                LOGGER.warning("RTT configuration stays suspended until a Falcon installation is available to take over")
            return self.ownership.state
        inspection = inspect_target(paths.config_file)
        if inspection.kind is TargetKind.INVALID:
            LOGGER.error("Cannot take over RTT configuration path %s: %s", paths.config_file, inspection.error)
            return self.ownership.state
        if inspection.kind in (TargetKind.MISSING, TargetKind.EMPTY, TargetKind.OWNED):
            self.ownership.grant_consent(paths.config_file, self.contents)
            return self.ownership.state
        answer = prompter(
            CONSENT_TITLE,
            f"The RTT client configuration '{paths.config_file}' was not created by Helios.\n\n"
            "Helios will rename it to a backup file and replace it with a generated configuration. "
            "Do you want to continue?",
        )
        if answer is ConsentAnswer.YES:
            backup = self.ownership.grant_consent(paths.config_file, self.contents)
            if backup is not None:
                LOGGER.info("Previous RTT configuration preserved as %s", backup)
        else:
            self.ownership.decline_consent()
        return self.ownership.state

    def disable(self) -> OwnershipState:
        """Stop managing the RTT configuration, also abandoning any pending consent."""
        self.ownership.disable()
        return self.ownership.state

    # Diagnostics ----------------------------------------------------------

    def on_ready_check(self) -> List[StatusReportItem]:
        state = self.ownership.state
        if state is OwnershipState.DISABLED:
            return [
                StatusReportItem(
                    status="RTT client configuration is not managed by this profile",
                    flags=StatusFlags.CONFIGURATION_UP_TO_DATE,
                )
            ]

        paths = self._current_paths()
        if state is OwnershipState.AWAITING_CONSENT:
            location = f"'{paths.config_file}'" if paths else "the RTT client directory"
            return [
                StatusReportItem(
                    status=f"RTT client configuration {location} was not created by Helios, "
                    "so RTT configuration has been suspended",
                    recommendation="Enable RTT configuration again and allow Helios to back up and replace the file",
                    severity=Severity.ERROR,
                )
            ]

        items = [StatusReportItem(status="Helios manages the RTT client configuration for this profile")]
        if paths is None:
            items.append(
                StatusReportItem(
                    status="No Falcon BMS installation was found, so the RTT client configuration cannot be written",
                    recommendation=f"Install Falcon BMS or set {FALCON_PATH_ENV_VAR} to its installation directory",
                    severity=Severity.ERROR,
                )
            )
            return items
        if not paths.install_valid:
            items.append(
                StatusReportItem(
                    status=f"Falcon BMS installation directory '{paths.install_dir}' does not exist",
                    recommendation="Select an installed Falcon BMS version for this profile",
                    severity=Severity.ERROR,
                )
            )
            return items

        items.extend(self._file_diagnostics(paths))
        if self.settings.networked and not self.settings.network.ip_address:
            items.append(
                StatusReportItem(
                    status="Networked RTT has no host address configured; 127.0.0.1 will be used",
                    recommendation="Enter the address of the computer running Falcon BMS",
                    severity=Severity.WARNING,
                )
            )
        items.extend(self.process_controller.diagnostics(paths.tool_dir))
        return items

    def _file_diagnostics(self, paths: RttPaths) -> List[StatusReportItem]:
        inspection = inspect_target(paths.config_file)
        if inspection.kind is TargetKind.INVALID:
            return [
                StatusReportItem(
                    status=f"RTT client configuration path '{paths.config_file}' cannot be used: {inspection.error}",
                    recommendation="Remove or rename whatever occupies the RTT configuration path",
                    severity=Severity.ERROR,
                )
            ]
        if inspection.is_foreign:
            return [
                StatusReportItem(
                    status=f"RTT client configuration '{paths.config_file}' was not created by Helios "
                    "and will not be overwritten",
                    recommendation="Enable RTT configuration again and allow Helios to back up and replace the file",
                    severity=Severity.ERROR,
                )
            ]
        if inspection.kind is TargetKind.MISSING:
            return [
                StatusReportItem(
                    status=f"RTT client configuration '{paths.config_file}' will be created when the profile starts",
                )
            ]
        if inspection.matches(self.contents):
            return [
                StatusReportItem(
                    status=f"RTT client configuration '{paths.config_file}' is up to date",
                    flags=StatusFlags.CONFIGURATION_UP_TO_DATE,
                )
            ]
        return [
            StatusReportItem(
                status=f"RTT client configuration '{paths.config_file}' will be updated when the profile starts",
            )
        ]

    def on_status_report(self) -> List[StatusReportItem]:
        items = self.on_ready_check()
        if self.ownership.state is OwnershipState.DISABLED:
            return items
        items.extend(
            StatusReportItem(
                status=line,
                flags=StatusFlags.CONFIGURATION_UP_TO_DATE | StatusFlags.VERBOSE,
            )
            for line in self._lines
        )
        return items

    # Helpers --------------------------------------------------------------

    def _current_paths(self) -> Optional[RttPaths]:
        return self._paths_provider()

    def _process_control_allowed(self) -> bool:
        return bool(self.settings.process_control.allow_process_control)

    def close(self) -> None:
        self.ownership.remove_listener(self._on_state_changed)
        for group in (self.settings.local, self.settings.network, self.settings.process_control):
            group.remove_listener(self._on_option_changed)
        self._listeners.clear()
