"""Track player exposure across a multi-lineup batch."""

from __future__ import annotations

import math
import threading
from collections import Counter
from typing import Dict, Iterable, Mapping, Set

from nbadfs.config.settings import OptimizationSettings
from nbadfs.optimizer.scoring import ScoredPlayer


def max_appearances(cap_fraction: float, total_lineups: int) -> int:
    """Lineup count a player may reach under ``cap_fraction`` of ``total_lineups``.

    Caps round down, except that any positive cap allows at least one
    appearance; a player can therefore exceed its cap by at most one lineup
    when ``cap_fraction * total_lineups < 1``.
    """

    if cap_fraction <= 0.0 or total_lineups <= 0:
        return 0
    if cap_fraction >= 1.0:
        return total_lineups
    return max(1, math.floor(cap_fraction * total_lineups + 1e-9))


def min_appearances(floor_fraction: float, total_lineups: int) -> int:
    if floor_fraction <= 0.0 or total_lineups <= 0:
        return 0
    return min(total_lineups, math.ceil(floor_fraction * total_lineups - 1e-9))


class ExposureTracker:
    """Per-batch appearance counts, owned by the orchestrator.

    Updates happen only after a lineup is accepted, under a lock, so a
    reader never observes a half-applied lineup.
    """

    def __init__(self, settings: OptimizationSettings, pool: Iterable[ScoredPlayer]):
        self.settings = settings
        self.total_lineups = settings.num_lineups
        self._lock = threading.Lock()
        self._counts: Counter[str] = Counter()
        self._limits: Dict[str, int] = {}
        self._exempt: Set[str] = set(settings.locked_player_ids)
        for player in pool:
            cap = settings.exposure_cap(player.tier)
            self._limits[player.player_id] = max_appearances(cap, self.total_lineups)

    @property
    def enforced(self) -> bool:
        return self.total_lineups > 1

    def limit_for(self, player_id: str) -> int:
        if not self.enforced or player_id in self._exempt:
            return self.total_lineups
        return self._limits.get(player_id, self.total_lineups)

    def count(self, player_id: str) -> int:
        with self._lock:
            return self._counts[player_id]

    def snapshot(self) -> Mapping[str, int]:
        with self._lock:
            return dict(self._counts)

    def blocked_ids(self) -> frozenset[str]:
        """Players that one more appearance would push past their tier cap."""

        if not self.enforced:
            return frozenset()
        with self._lock:
            return frozenset(
                pid
                for pid, limit in self._limits.items()
                if pid not in self._exempt and self._counts[pid] + 1 > limit
            )

    def admits(self, player_ids: Iterable[str]) -> bool:
        """True when every player can take one more appearance."""

        if not self.enforced:
            return True
        with self._lock:
            return all(
                pid in self._exempt or self._counts[pid] + 1 <= self._limits.get(pid, self.total_lineups)
                for pid in player_ids
            )

    def record(self, player_ids: Iterable[str]) -> None:
        with self._lock:
            for pid in player_ids:
                self._counts[pid] += 1

    def swap(self, removed: str, added: str) -> None:
        """Apply a substitution made after acceptance (minimum-exposure pass)."""

        with self._lock:
            self._counts[removed] -= 1
            if self._counts[removed] <= 0:
                del self._counts[removed]
            self._counts[added] += 1
