"""Persisted RTT settings and a JSON-backed store for them."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .options import LocalOptions, NetworkOptions, ProcessControlOptions, coerce_bool, coerce_int
from .serializer import GlobalOptions

LOGGER = logging.getLogger("FalconRTT.preferences")

SETTINGS_FILE = "rtt_settings.json"
RENDERER_MIN = 0
RENDERER_MAX = 6

_KNOWN_KEYS = {
    "renderer",
    "networked",
    "local",
    "network",
    "enabled",
    "awaiting_consent",
    "process_control",
    "falcon_version",
}


@dataclass
class RttSettings:
    """Everything about the RTT configuration that the host persists with a profile."""

    renderer: int = 0
    networked: bool = False
    local: LocalOptions = field(default_factory=LocalOptions)
    network: NetworkOptions = field(default_factory=NetworkOptions)
    enabled: bool = False
    awaiting_consent: bool = False
    process_control: ProcessControlOptions = field(default_factory=ProcessControlOptions)
    falcon_version: Optional[str] = None

    def __post_init__(self) -> None:
        self.renderer = coerce_int(self.renderer, 0, RENDERER_MIN, RENDERER_MAX)
        if self.awaiting_consent:
            self.enabled = False

    def global_options(self) -> GlobalOptions:
        return GlobalOptions(
            renderer=self.renderer,
            networked=self.networked,
            local=self.local,
            network=self.network,
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "renderer": int(self.renderer),
            "networked": bool(self.networked),
            "local": self.local.to_dict(),
            "network": self.network.to_dict(),
            "enabled": bool(self.enabled),
            "awaiting_consent": bool(self.awaiting_consent),
            "process_control": self.process_control.to_dict(),
        }
        if self.falcon_version:
            payload["falcon_version"] = str(self.falcon_version)
        return payload

    @classmethod
    def from_payload(cls, data: Any) -> "RttSettings":
        if not isinstance(data, Mapping):
            return cls()
        for key in data:
            if key not in _KNOWN_KEYS:
                LOGGER.warning("Ignored unsupported RTT setting '%s' with value %r", key, data[key])
        falcon_version = data.get("falcon_version")
        return cls(
            renderer=data.get("renderer", 0),
            networked=coerce_bool(data.get("networked"), False),
            local=LocalOptions.from_dict(data.get("local")),
            network=NetworkOptions.from_dict(data.get("network")),
            enabled=coerce_bool(data.get("enabled"), False),
            awaiting_consent=coerce_bool(data.get("awaiting_consent"), False),
            process_control=ProcessControlOptions.from_dict(data.get("process_control")),
            falcon_version=str(falcon_version) if falcon_version else None,
        )


class SettingsStore:
    """Reads and writes :class:`RttSettings` as JSON inside the host's data directory."""

    def __init__(self, base_dir: Path, filename: str = SETTINGS_FILE) -> None:
        self.base_dir = Path(base_dir)
        self.path = self.base_dir / filename

    def load(self) -> RttSettings:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return RttSettings()
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Failed to read RTT settings %s; using defaults: %s", self.path, exc)
            return RttSettings()
        return RttSettings.from_payload(data)

    def save(self, settings: RttSettings) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(settings.to_payload(), indent=2), encoding="utf-8")
