"""Structured option groups that notify their owner through typed change events."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Tuple

LOGGER = logging.getLogger("FalconRTT.options")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 44000
DEFAULT_FPS = 30
DEFAULT_EXECUTABLE = "RTTClient64.exe"


@dataclass(frozen=True)
class OptionChanged:
    """Emitted when a declared option field takes a new value."""

    group: str
    name: str
    old: Any
    new: Any


OptionListener = Callable[[OptionChanged], None]


def coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        token = value.strip().lower()
        if token in {"1", "true", "yes", "on"}:
            return True
        if token in {"0", "false", "no", "off"}:
            return False
    return default


def coerce_int(value: Any, default: int, minimum: int, maximum: int) -> int:
    try:
        numeric = int(value)
    except (TypeError, ValueError):
        return default
    return max(minimum, min(numeric, maximum))


def coerce_str(value: Any, default: str) -> str:
    if value is None:
        return default
    return str(value).strip()


class OptionGroup:
    """Base for option groups; subclasses declare ``FIELDS`` as name -> default."""

    GROUP: ClassVar[str] = ""
    FIELDS: ClassVar[Mapping[str, Any]] = {}

    def __init__(self, **values: Any) -> None:
        object.__setattr__(self, "_listeners", [])
        for name, default in self.FIELDS.items():
            object.__setattr__(self, name, default)
        for name, value in values.items():
            if name not in self.FIELDS:
                raise TypeError(f"{type(self).__name__} has no option {name!r}")
            object.__setattr__(self, name, self._coerce(name, value))

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in self.FIELDS:
            raise AttributeError(f"{type(self).__name__} has no option {name!r}")
        value = self._coerce(name, value)
        old = getattr(self, name)
        if old == value:
            return
        object.__setattr__(self, name, value)
        self._notify(OptionChanged(self.GROUP, name, old, value))

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.FIELDS)
        return f"{type(self).__name__}({fields})"

    # Listeners ------------------------------------------------------------

    def add_listener(self, listener: OptionListener) -> None:
        listeners: List[OptionListener] = self._listeners
        if listener not in listeners:
            listeners.append(listener)

    def remove_listener(self, listener: OptionListener) -> None:
        listeners: List[OptionListener] = self._listeners
        if listener in listeners:
            listeners.remove(listener)

    def _notify(self, event: OptionChanged) -> None:
        for listener in tuple(self._listeners):
            listener(event)

    # Persistence ----------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.FIELDS}

    @classmethod
    def from_dict(cls, data: Any):
        group = cls()
        if not isinstance(data, Mapping):
            return group
        for name, value in data.items():
            if name not in cls.FIELDS:
                LOGGER.warning("Ignored unsupported %s option '%s' with value %r", cls.GROUP, name, value)
                continue
            object.__setattr__(group, name, group._coerce(name, value))
        return group

    def _coerce(self, name: str, value: Any) -> Any:
        return value


class LocalOptions(OptionGroup):
    """Options for RTT rendering on the local machine."""

    GROUP = "local"
    FIELDS = {
        "frames_per_second": DEFAULT_FPS,
        "grid": False,
    }

    def _coerce(self, name: str, value: Any) -> Any:
        if name == "frames_per_second":
            return coerce_int(value, DEFAULT_FPS, 1, 240)
        return coerce_bool(value, self.FIELDS[name])


class NetworkOptions(OptionGroup):
    """Options for RTT running against a networked BMS host."""

    GROUP = "network"
    FIELDS = {
        "ip_address": DEFAULT_HOST,
        "port": DEFAULT_PORT,
        "data_f4": True,
        "data_bms": True,
        "data_osb": True,
        "data_ivibe": True,
        "data_strings": False,
        "data_drawing": False,
    }

    def _coerce(self, name: str, value: Any) -> Any:
        if name == "ip_address":
            return coerce_str(value, DEFAULT_HOST)
        if name == "port":
            return coerce_int(value, DEFAULT_PORT, 1, 65535)
        return coerce_bool(value, self.FIELDS[name])


class ProcessControlOptions(OptionGroup):
    """Whether a profile may start and stop the RTT client process."""

    GROUP = "process_control"
    FIELDS = {
        "allow_process_control": False,
        "executable_name": DEFAULT_EXECUTABLE,
    }

    def _coerce(self, name: str, value: Any) -> Any:
        if name == "executable_name":
            return coerce_str(value, DEFAULT_EXECUTABLE) or DEFAULT_EXECUTABLE
        return coerce_bool(value, False)


# flag lines emitted after FPS/HOST/PORT, in file order
NETWORK_FLAG_KEYS: Tuple[Tuple[str, str], ...] = (
    ("DATA_F4", "data_f4"),
    ("DATA_BMS", "data_bms"),
    ("DATA_OSB", "data_osb"),
    ("DATA_IVIBE", "data_ivibe"),
    ("DATA_STRINGS", "data_strings"),
    ("DATA_DRAWING", "data_drawing"),
)
