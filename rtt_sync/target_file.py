"""Non-mutating inspection and low-level writing of the RTT client config file."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .serializer import OWNERSHIP_MARKER

LOGGER = logging.getLogger("FalconRTT.target_file")

BACKUP_EXTENSION = "original"
ENCODING = "utf-8"


class TargetKind(enum.Enum):
    MISSING = "missing"
    EMPTY = "empty"
    OWNED = "owned"
    FOREIGN = "foreign"
    INVALID = "invalid"


@dataclass(frozen=True)
class TargetInspection:
    path: Path
    kind: TargetKind
    contents: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.kind not in (TargetKind.MISSING, TargetKind.INVALID)

    @property
    def is_foreign(self) -> bool:
        return self.kind is TargetKind.FOREIGN

    def matches(self, content: str) -> bool:
        return self.contents is not None and self.contents == encode(content)


def encode(content: str) -> bytes:
    # utf-8 without BOM, line endings already chosen by the serializer
    return content.encode(ENCODING)


def is_owned(contents: str) -> bool:
    """Substring test: any file containing the marker anywhere counts as ours."""
    return OWNERSHIP_MARKER in contents


def inspect_target(path: Path) -> TargetInspection:
    path = Path(path)
    if path.is_dir():
        return TargetInspection(path, TargetKind.INVALID, error="path is a directory")
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return TargetInspection(path, TargetKind.MISSING)
    except OSError as exc:
        return TargetInspection(path, TargetKind.INVALID, error=str(exc))
    if not raw:
        return TargetInspection(path, TargetKind.EMPTY, contents=raw)
    text = raw.decode(ENCODING, errors="replace")
    kind = TargetKind.OWNED if is_owned(text) else TargetKind.FOREIGN
    return TargetInspection(path, kind, contents=raw)


def backup_path_for(path: Path) -> Path:
    """First unused of ``name.original``, ``name.original2``, ``name.original3``, ..."""
    path = Path(path)
    candidate = path.with_suffix(f".{BACKUP_EXTENSION}")
    index = 2
    while candidate.exists():
        candidate = path.with_suffix(f".{BACKUP_EXTENSION}{index}")
        index += 1
    return candidate


def write_config(path: Path, content: str) -> None:
    """Write the full file, creating its directory. OSError propagates to the caller."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode(content))
    LOGGER.debug("Wrote %d bytes of RTT configuration to %s", len(content), path)
