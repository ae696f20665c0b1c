from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from nbadfs.config import OptimizationSettings
from nbadfs.models import PlayerRecord


class OptimizeRequest(BaseModel):
    slate_id: str | None = None
    players: List[PlayerRecord] = Field(default_factory=list)
    settings: OptimizationSettings = Field(default_factory=OptimizationSettings)


class LineupPlayerResponse(BaseModel):
    player_id: str
    name: str
    team: str
    opponent: str | None
    positions: List[str]
    salary: int
    projected_points: float
    floor: float | None
    ceiling: float | None
    ownership: float | None
    leverage_score: float


class LineupSlotResponse(BaseModel):
    slot: str
    player: LineupPlayerResponse


class LineupResponse(BaseModel):
    lineup_id: str
    slots: List[LineupSlotResponse]
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
    teams: List[str]
    team_count: int
    game_count: int
    salary_efficiency: float


class PlayerExposureResponse(BaseModel):
    player_id: str
    name: str
    team: str
    salary: int
    count: int
    exposure: float
    tier: Literal["chalk", "mid", "leverage"]
    ownership: float | None
    leverage_score: float
