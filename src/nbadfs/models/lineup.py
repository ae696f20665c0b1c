"""Result containers produced by the optimizer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple

from nbadfs.config.roster import SlotKind


@dataclass(frozen=True)
class LineupPlayer:
    player_id: str
    name: str
    team: str
    opponent: Optional[str]
    positions: Tuple[str, ...]
    salary: int
    projected_points: float
    floor: Optional[float] = None
    ceiling: Optional[float] = None
    ownership: Optional[float] = None
    leverage_score: float = 0.0
    volatility: Optional[float] = None
    boom_probability: Optional[float] = None
    bust_probability: Optional[float] = None
    utility: float = 0.0


@dataclass(frozen=True)
class LineupSlot:
    slot: SlotKind
    player: LineupPlayer


@dataclass(frozen=True)
class LineupResult:
    lineup_id: str
    slots: Tuple[LineupSlot, ...]
    total_salary: int
    remaining_salary: int
    projected_points: float
    total_floor: float
    total_ceiling: float
    avg_ownership: float
    total_leverage: float
    avg_volatility: float
    avg_boom_probability: float
    avg_bust_probability: float
    total_utility: float
    teams: Tuple[str, ...]
    game_count: int
    salary_efficiency: float

    @property
    def players(self) -> Tuple[LineupPlayer, ...]:
        return tuple(entry.player for entry in self.slots)

    @property
    def team_count(self) -> int:
        return len(self.teams)

    @property
    def player_ids(self) -> Tuple[str, ...]:
        return tuple(entry.player.player_id for entry in self.slots)


@dataclass(frozen=True)
class ExposureEntry:
    player_id: str
    name: str
    team: str
    salary: int
    count: int
    exposure: float
    tier: Literal["chalk", "mid", "leverage"]
    ownership: Optional[float]
    leverage_score: float


@dataclass(frozen=True)
class BatchNotice:
    """Non-fatal failure attached to an optimization result."""

    kind: Literal["empty_pool", "infeasible", "partial_batch"]
    requested: int
    produced: int
    reason: str
    details: Tuple[str, ...] = field(default_factory=tuple)
