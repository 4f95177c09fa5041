"""Turns global options and resolved displays into RTTClient.ini lines."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence

from .displays import SUPPORTED_CHANNELS, DisplayChannel, ResolvedDisplaySet, ViewportRegion
from .options import DEFAULT_HOST, NETWORK_FLAG_KEYS, LocalOptions, NetworkOptions
from .version import generator_version_tag

# Any file containing this text is treated as written by us.
OWNERSHIP_MARKER = "### RTT Client Config, generated by Helios"


@dataclass(frozen=True)
class GlobalOptions:
    renderer: int = 0
    networked: bool = False
    local: LocalOptions = field(default_factory=LocalOptions)
    network: NetworkOptions = field(default_factory=NetworkOptions)


def header_line(version: Optional[str] = None) -> str:
    tag = generator_version_tag(version) if version else generator_version_tag()
    return f"{OWNERSHIP_MARKER} {tag}"


def _flag(value: bool) -> str:
    return "1" if value else "0"


def round_coordinate(value: float) -> int:
    """Round half up by truncating ``value + 0.5``; negative results are not clamped."""
    return int(value + 0.5)


def global_lines(options: GlobalOptions) -> Iterator[str]:
    yield f"RENDERER = {options.renderer}"
    yield f"NETWORKED = {_flag(options.networked)}"
    yield f"FPS = {options.local.frames_per_second}"
    yield f"HOST = {options.network.ip_address or DEFAULT_HOST}"
    yield f"PORT = {options.network.port}"
    for key, attribute in NETWORK_FLAG_KEYS:
        yield f"{key} = {_flag(getattr(options.network, attribute))}"
    yield f"GRID = {_flag(options.local.grid)}"


def enable_lines(channels: Iterable[DisplayChannel], resolved: ResolvedDisplaySet) -> Iterator[str]:
    for channel in channels:
        yield f"USE_{channel.name} = {_flag(channel.name in resolved)}"


def geometry_lines(name: str, region: ViewportRegion) -> Iterator[str]:
    yield f"{name}_X = {round_coordinate(region.x)}"
    yield f"{name}_Y = {round_coordinate(region.y)}"
    yield f"{name}_W = {round_coordinate(region.width)}"
    yield f"{name}_H = {round_coordinate(region.height)}"


def serialize(
    options: GlobalOptions,
    resolved: ResolvedDisplaySet,
    channels: Sequence[DisplayChannel] = SUPPORTED_CHANNELS,
    *,
    version: Optional[str] = None,
) -> List[str]:
    """Build the complete, canonically ordered configuration as a list of lines."""

    lines = [header_line(version)]
    lines.extend(global_lines(options))
    lines.extend(enable_lines(channels, resolved))
    for name, region in resolved.items():
        lines.extend(geometry_lines(name, region))
    for name, region in resolved.items():
        lines.append(f"{name}_ONTOP = {_flag(region.is_overlay)}")
    return lines


def render(lines: Iterable[str]) -> str:
    return os.linesep.join(lines)
