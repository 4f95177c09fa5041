from __future__ import annotations

from pathlib import Path

from rtt_sync.file_sync import RefusalReason, SyncOutcome, sync
from rtt_sync.ownership import OwnershipState
from rtt_sync.serializer import OWNERSHIP_MARKER

GENERATED = f"{OWNERSHIP_MARKER} 1.2.0\nRENDERER = 0\nFPS = 30"


def _paths(tmp_path: Path):
    install = tmp_path / "Falcon BMS 4.37"
    install.mkdir()
    return install, install / "Tools" / "RTTRemote" / "RTTClient.ini"


def test_first_sync_writes_then_reports_up_to_date(tmp_path):
    install, config = _paths(tmp_path)

    first = sync(config, GENERATED, state=OwnershipState.ENABLED, required_dir=install)
    second = sync(config, GENERATED, state=OwnershipState.ENABLED, required_dir=install)

    assert first.outcome is SyncOutcome.UPDATED
    assert first.ok is True
    assert config.read_bytes() == GENERATED.encode("utf-8")
    assert second.outcome is SyncOutcome.UP_TO_DATE


def test_unchanged_content_does_not_touch_file(tmp_path, monkeypatch):
    install, config = _paths(tmp_path)
    config.parent.mkdir(parents=True)
    config.write_bytes(GENERATED.encode("utf-8"))
    calls = []
    monkeypatch.setattr("rtt_sync.file_sync.write_config", lambda *args: calls.append(args))

    result = sync(config, GENERATED, state=OwnershipState.ENABLED, required_dir=install)

    assert result.outcome is SyncOutcome.UP_TO_DATE
    assert calls == []


def test_foreign_file_is_never_overwritten(tmp_path):
    install, config = _paths(tmp_path)
    config.parent.mkdir(parents=True)
    config.write_text("FPS = 60", encoding="utf-8")

    result = sync(config, GENERATED, state=OwnershipState.ENABLED, required_dir=install)

    assert result.outcome is SyncOutcome.REFUSED
    assert result.reason is RefusalReason.NOT_OWNED
    assert result.ok is False
    assert config.read_text(encoding="utf-8") == "FPS = 60"


def test_owned_file_with_old_content_is_replaced(tmp_path):
    install, config = _paths(tmp_path)
    config.parent.mkdir(parents=True)
    config.write_text(f"{OWNERSHIP_MARKER} 1.0.0\nFPS = 10", encoding="utf-8")

    result = sync(config, GENERATED, state=OwnershipState.ENABLED, required_dir=install)

    assert result.outcome is SyncOutcome.UPDATED
    assert config.read_text(encoding="utf-8") == GENERATED


def test_awaiting_consent_refuses_before_any_io(tmp_path, monkeypatch):
    install, config = _paths(tmp_path)
    def _unexpected(path):
        raise AssertionError("target inspected while awaiting consent")

    monkeypatch.setattr("rtt_sync.file_sync.inspect_target", _unexpected)

    result = sync(config, GENERATED, state=OwnershipState.AWAITING_CONSENT, required_dir=install)

    assert result.reason is RefusalReason.AWAITING_CONSENT
    assert not config.exists()


def test_missing_install_dir_refuses(tmp_path):
    config = tmp_path / "gone" / "Tools" / "RTTRemote" / "RTTClient.ini"

    result = sync(config, GENERATED, state=OwnershipState.ENABLED, required_dir=tmp_path / "gone")

    assert result.outcome is SyncOutcome.REFUSED
    assert result.reason is RefusalReason.MISSING_PREREQUISITE
    assert not config.parent.exists()


def test_write_failure_is_reported(tmp_path, monkeypatch):
    install, config = _paths(tmp_path)

    def _fail(path, content):
        raise PermissionError("read-only")

    monkeypatch.setattr("rtt_sync.file_sync.write_config", _fail)

    result = sync(config, GENERATED, state=OwnershipState.ENABLED, required_dir=install)

    assert result.outcome is SyncOutcome.FAILED
    assert isinstance(result.error, PermissionError)
