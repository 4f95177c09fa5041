"""Maps host viewport regions onto the fixed catalogue of RTT display channels."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

LOGGER = logging.getLogger("FalconRTT.displays")

OVERLAY_SUFFIX = "_OVERLAY"


@dataclass(frozen=True)
class DisplayChannel:
    """One display slot understood by the RTT client."""

    name: str
    is_overlay: bool = False


CHANNEL_NAMES: Tuple[str, ...] = ("HUD", "PFL", "DED", "RWR", "MFDLEFT", "MFDRIGHT", "HMS")

SUPPORTED_CHANNELS: Tuple[DisplayChannel, ...] = tuple(DisplayChannel(name) for name in CHANNEL_NAMES)


def _build_alias_catalogue() -> Dict[str, DisplayChannel]:
    catalogue: Dict[str, DisplayChannel] = {}
    for name in CHANNEL_NAMES:
        catalogue[name] = DisplayChannel(name)
        catalogue[name + OVERLAY_SUFFIX] = DisplayChannel(name, is_overlay=True)
    return catalogue


# viewport name -> channel it renders, including the overlay variants
VIEWPORT_ALIASES: Dict[str, DisplayChannel] = _build_alias_catalogue()
OVERLAY_ALIASES = frozenset(alias for alias, channel in VIEWPORT_ALIASES.items() if channel.is_overlay)


def lookup_channel(viewport_name: str) -> Optional[DisplayChannel]:
    return VIEWPORT_ALIASES.get(viewport_name)


@dataclass(frozen=True)
class ViewportRegion:
    """A named on-screen rectangle supplied by the host, in absolute coordinates."""

    name: str
    x: float
    y: float
    width: float
    height: float

    @property
    def is_overlay(self) -> bool:
        return self.name in OVERLAY_ALIASES

    @property
    def channel(self) -> Optional[str]:
        match = lookup_channel(self.name)
        return match.name if match else None


class ResolvedDisplaySet(Mapping):
    """Read-only mapping of channel name to the first region that resolved to it.

    Iteration always follows the channel catalogue order, not the order in which
    the host happened to report its viewports.
    """

    def __init__(self, regions: Mapping[str, ViewportRegion]) -> None:
        self._regions: Dict[str, ViewportRegion] = {
            name: regions[name] for name in CHANNEL_NAMES if name in regions
        }

    def __getitem__(self, channel: str) -> ViewportRegion:
        return self._regions[channel]

    def __iter__(self) -> Iterator[str]:
        return iter(self._regions)

    def __len__(self) -> int:
        return len(self._regions)

    def __repr__(self) -> str:
        return f"ResolvedDisplaySet({list(self._regions)!r})"


def resolve(regions: Iterable[ViewportRegion]) -> ResolvedDisplaySet:
    """Resolve host regions to channels, keeping only the first region per channel."""

    present: Dict[str, ViewportRegion] = {}
    for region in regions:
        channel = region.channel
        if channel is None:
            continue
        if channel in present:
            LOGGER.debug(
                "Ignoring duplicate viewport %s for RTT display %s; already using %s",
                region.name,
                channel,
                present[channel].name,
            )
            continue
        present[channel] = region
    return ResolvedDisplaySet(present)
