"""Data models shared by the optimizer, API and CLI."""

from .player import PlayerRecord
from .lineup import BatchNotice, ExposureEntry, LineupPlayer, LineupResult, LineupSlot

__all__ = [
    "PlayerRecord",
    "BatchNotice",
    "ExposureEntry",
    "LineupPlayer",
    "LineupResult",
    "LineupSlot",
]
