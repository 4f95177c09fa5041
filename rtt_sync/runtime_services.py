from __future__ import annotations

import logging
from typing import Optional, Protocol

from .errors import ConfigWriteError
from .falcon_install import RttPaths
from .file_sync import RefusalReason, SyncOutcome, SyncResult, sync
from .ownership import OwnershipStateMachine
from .process_control import RttProcessController


class _GeneratorLike(Protocol):
    ownership: OwnershipStateMachine
    process_controller: RttProcessController

    @property
    def contents(self) -> str: ...
    def _current_paths(self) -> Optional[RttPaths]: ...
    def _process_control_allowed(self) -> bool: ...


def start_runtime_services(generator: _GeneratorLike, logger: logging.Logger) -> Optional[SyncResult]:
    """Check ownership, write the config, then launch the RTT client, in that order."""
    if not generator.ownership.enabled:
        logger.debug("RTT configuration not enabled; nothing to do at profile start")
        return None

    paths = generator._current_paths()
    if paths is None:
        logger.error("No Falcon BMS installation found; RTT configuration not written")
        return SyncResult(SyncOutcome.REFUSED, None, reason=RefusalReason.MISSING_PREREQUISITE)

    generator.ownership.check_target(paths.config_file)
    result = sync(
        paths.config_file,
        generator.contents,
        state=generator.ownership.state,
        required_dir=paths.install_dir,
    )
    if result.outcome is SyncOutcome.FAILED:
        raise ConfigWriteError(paths.config_file, result.error or OSError("unknown write failure"))
    if result.outcome is SyncOutcome.REFUSED:
        logger.warning("RTT configuration not written (%s); RTT client will not be started", result.reason.value)

    generator.process_controller.on_profile_start(
        generator._process_control_allowed(),
        paths.install_valid,
        result,
        paths.tool_dir,
    )
    return result


def stop_runtime_services(generator: _GeneratorLike, logger: logging.Logger) -> None:
    record = generator.process_controller.run_record
    record.log_state("at profile stop")
    if generator.process_controller.on_profile_stop(generator._process_control_allowed()):
        logger.debug("RTT client stopped with profile")
