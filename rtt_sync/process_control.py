"""Starts and stops the RTT client process in step with the host profile."""
from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .file_sync import SyncResult
from .lifecycle import ProcessRunRecord
from .options import ProcessControlOptions
from .status import Severity, StatusFlags, StatusReportItem

LOGGER = logging.getLogger("FalconRTT.process_control")

Launcher = Callable[..., "subprocess.Popen[bytes]"]


class RttProcessController:
    """Launches at most one RTT client per profile run and only stops what it launched."""

    def __init__(
        self,
        options: ProcessControlOptions,
        *,
        launcher: Optional[Launcher] = None,
        terminate_timeout: float = 5.0,
    ) -> None:
        self._options = options
        self._launcher: Launcher = launcher or subprocess.Popen
        self._terminate_timeout = terminate_timeout
        self._run = ProcessRunRecord(LOGGER)

    @property
    def run_record(self) -> ProcessRunRecord:
        return self._run

    def executable_path(self, tool_dir: Path) -> Path:
        return Path(tool_dir) / self._options.executable_name

    # Lifecycle ------------------------------------------------------------

    def on_profile_start(
        self,
        policy_allows: bool,
        host_path_valid: bool,
        sync_result: Optional[SyncResult],
        tool_dir: Optional[Path],
    ) -> bool:
        """Launch the client if the config is current and policy allows it."""
        if sync_result is None or not sync_result.ok:
            LOGGER.debug("Not starting RTT client; configuration was not synchronized")
            return False
        if not host_path_valid or tool_dir is None:
            LOGGER.debug("Not starting RTT client; Falcon installation path is not valid")
            return False
        if not policy_allows:
            LOGGER.debug("Not starting RTT client; profile is not allowed to control processes")
            return False
        if self._run.started:
            LOGGER.debug("RTT client already started during this run (pid=%s)", self._run.process.pid)
            return False
        return self._launch(Path(tool_dir))

    def on_profile_stop(self, policy_allows: bool) -> bool:
        """Terminate the client if, and only if, this run started it."""
        try:
            if not self._run.started:
                return False
            if not policy_allows:
                LOGGER.debug("Leaving RTT client running; profile is not allowed to control processes")
                return False
            return self._terminate(self._run.process)
        finally:
            self._run.clear()

    # Diagnostics ----------------------------------------------------------

    def diagnostics(self, tool_dir: Optional[Path]) -> List[StatusReportItem]:
        if not self._options.allow_process_control:
            return [
                StatusReportItem(
                    status="This profile will not start or stop the RTT client",
                    recommendation="Enable process control if you want the RTT client to run with this profile",
                    flags=StatusFlags.CONFIGURATION_UP_TO_DATE,
                )
            ]
        if tool_dir is None:
            return []
        executable = self.executable_path(tool_dir)
        if not executable.is_file():
            return [
                StatusReportItem(
                    status=f"RTT client executable was not found at '{executable}'",
                    recommendation="Install the RTT client or correct the executable name in the RTT settings",
                    severity=Severity.WARNING,
                )
            ]
        return [
            StatusReportItem(
                status=f"The RTT client '{executable}' will be started and stopped with this profile",
                flags=StatusFlags.CONFIGURATION_UP_TO_DATE,
            )
        ]

    # Internal helpers -----------------------------------------------------

    def _launch(self, tool_dir: Path) -> bool:
        command = [str(self.executable_path(tool_dir))]
        LOGGER.debug("Launching RTT client: %s cwd=%s", _format_command(command), tool_dir)
        try:
            process = self._launcher(
                command,
                cwd=str(tool_dir),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
            )
        except FileNotFoundError:
            LOGGER.error("RTT client executable not found: %s", command[0])
            return False
        except OSError as exc:
            LOGGER.error("Failed to launch RTT client %s: %s", command[0], exc)
            return False
        self._run.record_launch(process)
        LOGGER.info("RTT client started (pid=%s)", process.pid)
        return True

    def _terminate(self, process: "subprocess.Popen[bytes]") -> bool:
        if process.poll() is not None:
            LOGGER.debug("RTT client already stopped (pid=%s, returncode=%s)", process.pid, process.returncode)
            return True
        LOGGER.info("Terminating RTT client (pid=%s)", process.pid)
        try:
            process.terminate()
            try:
                process.wait(timeout=self._terminate_timeout)
            except subprocess.TimeoutExpired:
                LOGGER.debug("Killing unresponsive RTT client (pid=%s)", process.pid)
                process.kill()
                process.wait(timeout=self._terminate_timeout)
        except (OSError, subprocess.TimeoutExpired) as exc:
            LOGGER.warning("RTT client stop incomplete (pid=%s): %s", process.pid, exc)
            return False
        return process.poll() is not None


def _format_command(command: Sequence[str]) -> str:
    try:
        return shlex.join(command)
    except TypeError:
        return " ".join(str(part) for part in command)
