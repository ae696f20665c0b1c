from __future__ import annotations

from typing import Dict, List, Literal

from pydantic import BaseModel, Field

from .lineup import LineupResponse, PlayerExposureResponse


class NoticeResponse(BaseModel):
    kind: Literal["empty_pool", "infeasible", "partial_batch"]
    requested: int
    produced: int
    reason: str
    details: List[str] = Field(default_factory=list)


class FilterSummaryResponse(BaseModel):
    input_players: int
    kept_players: int
    dropped: Dict[str, int] = Field(default_factory=dict)


class ExposureGapResponse(BaseModel):
    player_id: str
    name: str
    required: int
    achieved: int


class OptimizeResponse(BaseModel):
    slate_id: str | None = None
    lineups: List[LineupResponse]
    exposure: List[PlayerExposureResponse]
    notice: NoticeResponse | None = None
    filter_summary: FilterSummaryResponse | None = None
    exposure_gaps: List[ExposureGapResponse] = Field(default_factory=list)
    elapsed: float
