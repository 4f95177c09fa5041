from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from rtt_sync.errors import ConfigWriteError
from rtt_sync.ownership import OwnershipState, OwnershipStateMachine
from rtt_sync.serializer import OWNERSHIP_MARKER
from rtt_sync.target_file import TargetKind, backup_path_for, inspect_target

GENERATED = f"{OWNERSHIP_MARKER} 1.2.0\nRENDERER = 0"


def _config(tmp_path: Path, text: Optional[str]) -> Path:
    path = tmp_path / "RTTClient.ini"
    if text is not None:
        path.write_text(text, encoding="utf-8")
    return path


def test_inspect_target_classifies_files(tmp_path):
    assert inspect_target(tmp_path / "absent.ini").kind is TargetKind.MISSING
    assert inspect_target(_config(tmp_path, "")).kind is TargetKind.EMPTY
    assert inspect_target(_config(tmp_path, "junk\n" + GENERATED)).kind is TargetKind.OWNED
    assert inspect_target(_config(tmp_path, "FPS = 60")).kind is TargetKind.FOREIGN
    assert inspect_target(tmp_path).kind is TargetKind.INVALID


def test_backup_names_skip_existing_backups(tmp_path):
    path = _config(tmp_path, "user")

    assert backup_path_for(path) == tmp_path / "RTTClient.original"
    (tmp_path / "RTTClient.original").write_text("old", encoding="utf-8")
    assert backup_path_for(path) == tmp_path / "RTTClient.original2"


def test_check_target_suspends_on_foreign_file(tmp_path):
    machine = OwnershipStateMachine(enabled=True)
    events = []
    machine.add_listener(events.append)
    path = _config(tmp_path, "FPS = 60")

    machine.check_target(path)

    assert machine.state is OwnershipState.AWAITING_CONSENT
    assert [(event.old, event.new) for event in events] == [
        (OwnershipState.ENABLED, OwnershipState.AWAITING_CONSENT)
    ]
    assert path.read_text(encoding="utf-8") == "FPS = 60"


def test_check_target_leaves_owned_file_enabled(tmp_path):
    machine = OwnershipStateMachine(enabled=True)

    machine.check_target(_config(tmp_path, GENERATED))

    assert machine.state is OwnershipState.ENABLED


def test_enable_is_refused_while_awaiting_consent():
    machine = OwnershipStateMachine(enabled=True, awaiting_consent=True)

    assert machine.enable() is False
    assert machine.state is OwnershipState.AWAITING_CONSENT


def test_grant_consent_backs_up_foreign_file(tmp_path):
    machine = OwnershipStateMachine(awaiting_consent=True)
    path = _config(tmp_path, "FPS = 60")

    backup = machine.grant_consent(path, GENERATED)

    assert backup == tmp_path / "RTTClient.original"
    assert backup.read_text(encoding="utf-8") == "FPS = 60"
    assert path.read_text(encoding="utf-8") == GENERATED
    assert machine.state is OwnershipState.ENABLED


def test_grant_consent_uses_next_free_backup_name(tmp_path):
    (tmp_path / "RTTClient.original").write_text("older", encoding="utf-8")
    path = _config(tmp_path, "FPS = 60")

    backup = OwnershipStateMachine(awaiting_consent=True).grant_consent(path, GENERATED)

    assert backup == tmp_path / "RTTClient.original2"
    assert (tmp_path / "RTTClient.original").read_text(encoding="utf-8") == "older"


def test_grant_consent_without_foreign_file_does_no_io(tmp_path):
    machine = OwnershipStateMachine()
    path = tmp_path / "RTTClient.ini"

    assert machine.grant_consent(path, GENERATED) is None
    assert machine.state is OwnershipState.ENABLED
    assert not path.exists()


def test_grant_consent_failure_keeps_state(tmp_path, monkeypatch):
    machine = OwnershipStateMachine(awaiting_consent=True)
    path = _config(tmp_path, "FPS = 60")

    def _refuse(self, target):
        raise PermissionError("locked")

    monkeypatch.setattr(Path, "rename", _refuse)

    with pytest.raises(ConfigWriteError) as excinfo:
        machine.grant_consent(path, GENERATED)

    assert excinfo.value.path == path
    assert isinstance(excinfo.value.cause, PermissionError)
    assert machine.state is OwnershipState.AWAITING_CONSENT
    assert path.read_text(encoding="utf-8") == "FPS = 60"


def test_decline_consent_disables():
    machine = OwnershipStateMachine(awaiting_consent=True)

    machine.decline_consent()

    assert machine.state is OwnershipState.DISABLED
    assert machine.enable() is True


def test_failed_write_after_backup_restores_foreign_file(tmp_path, monkeypatch):
    machine = OwnershipStateMachine(awaiting_consent=True)
    path = _config(tmp_path, "FPS = 60")

    def _fail(target, content):
        raise OSError("disk full")

    monkeypatch.setattr("rtt_sync.ownership.write_config", _fail)

    with pytest.raises(ConfigWriteError):
        machine.grant_consent(path, GENERATED)

    assert path.read_text(encoding="utf-8") == "FPS = 60"
    assert not (tmp_path / "RTTClient.original").exists()
    assert machine.state is OwnershipState.AWAITING_CONSENT
