"""Central version identifier for the RTT config sync core."""
from __future__ import annotations

from packaging.version import InvalidVersion, Version

__all__ = ["__version__", "generator_version_tag"]

__version__ = "1.2.0"


def generator_version_tag(version: str = __version__) -> str:
    """Return the normalised version string embedded in generated config headers."""

    try:
        return str(Version(version))
    except InvalidVersion:
        return version.strip() or "unknown"
