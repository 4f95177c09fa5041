"""Falcon BMS RTT client configuration sync for Helios-style viewport hosts."""
from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
