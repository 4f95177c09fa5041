"""Locates the Falcon BMS installation that hosts the RTT client."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from packaging.version import InvalidVersion, Version

try:
    import winreg  # type: ignore
except ImportError:  # pragma: no cover - registry only exists on Windows
    winreg = None  # type: ignore

LOGGER = logging.getLogger("FalconRTT.falcon_install")

FALCON_ROOT_KEY = "SOFTWARE\\WOW6432Node\\Benchmark Sims\\"
FALCON_PATH_ENV_VAR = "RTT_SYNC_FALCON_PATH"
RTT_TOOL_SUBDIR = ("Tools", "RTTRemote")
RTT_CONFIG_NAME = "RTTClient.ini"

_VERSION_NOISE = re.compile(r"[A-Za-z ]")


@dataclass(frozen=True)
class FalconInstallation:
    name: str
    base_dir: Path
    version: Optional[Version] = None


@dataclass(frozen=True)
class RttPaths:
    """Where the RTT client lives inside one BMS installation."""

    install_dir: Path
    tool_dir: Path
    config_file: Path

    @classmethod
    def for_install(cls, install_dir: Path) -> "RttPaths":
        install_dir = Path(install_dir)
        tool_dir = install_dir.joinpath(*RTT_TOOL_SUBDIR)
        return cls(install_dir=install_dir, tool_dir=tool_dir, config_file=tool_dir / RTT_CONFIG_NAME)

    @property
    def install_valid(self) -> bool:
        return self.install_dir.is_dir()


def parse_profile_version(name: str) -> Optional[Version]:
    """Parse registry names such as ``Falcon BMS 4.37`` into a comparable version."""
    cleaned = _VERSION_NOISE.sub("", name or "")
    if not cleaned:
        return None
    try:
        return Version(cleaned)
    except InvalidVersion:
        LOGGER.debug("Unparseable Falcon version name %r", name)
        return None


def _read_registry_installations() -> List[FalconInstallation]:
    if winreg is None:
        return []
    installations: List[FalconInstallation] = []
    try:
        root = winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, FALCON_ROOT_KEY)
    except OSError:
        LOGGER.debug("No Falcon BMS registry key at HKLM\\%s", FALCON_ROOT_KEY)
        return []
    with root:
        index = 0
        while True:
            try:
                name = winreg.EnumKey(root, index)
            except OSError:
                break
            index += 1
            try:
                with winreg.OpenKey(root, name) as subkey:
                    base_dir, _ = winreg.QueryValueEx(subkey, "baseDir")
            except OSError:
                LOGGER.debug("Falcon registry entry %s has no baseDir", name)
                continue
            if base_dir:
                installations.append(FalconInstallation(name, Path(base_dir), parse_profile_version(name)))
    return installations


def discover_installations() -> List[FalconInstallation]:
    """Installed BMS versions, newest first; unparseable versions sort last."""
    installations = _read_registry_installations()
    return sorted(
        installations,
        key=lambda item: (item.version is not None, item.version or Version("0"), item.name),
        reverse=True,
    )


def resolve_install_dir(version_name: Optional[str] = None) -> Optional[Path]:
    env_override = os.getenv(FALCON_PATH_ENV_VAR)
    if env_override:
        override_path = Path(env_override).expanduser()
        LOGGER.debug("Using Falcon installation from %s=%s", FALCON_PATH_ENV_VAR, override_path)
        return override_path
    installations = discover_installations()
    if version_name:
        for installation in installations:
            if installation.name == version_name:
                return installation.base_dir
        LOGGER.debug("Falcon version %s not installed; falling back to newest", version_name)
    if installations:
        return installations[0].base_dir
    return None


def resolve_rtt_paths(version_name: Optional[str] = None) -> Optional[RttPaths]:
    install_dir = resolve_install_dir(version_name)
    if install_dir is None:
        return None
    return RttPaths.for_install(install_dir)
