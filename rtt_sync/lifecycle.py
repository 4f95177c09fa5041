from __future__ import annotations

import logging
import subprocess
from typing import Optional


class ProcessRunRecord:
    """Remembers the RTT process this controller launched during one profile run."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger
        self._process: Optional["subprocess.Popen[bytes]"] = None

    @property
    def started(self) -> bool:
        return self._process is not None

    @property
    def process(self) -> Optional["subprocess.Popen[bytes]"]:
        return self._process

    def record_launch(self, process: "subprocess.Popen[bytes]") -> None:
        if process is None:
            return
        if self._process is not None and self._process is not process:
            self._logger.warning(
                "Replacing tracked RTT process pid=%s with pid=%s", self._process.pid, process.pid
            )
        self._process = process

    def clear(self) -> None:
        self._process = None

    def log_state(self, label: str) -> None:
        if self._process is None:
            return
        self._logger.debug(
            "Tracked RTT process %s: pid=%s running=%s",
            label,
            self._process.pid,
            self._process.poll() is None,
        )
