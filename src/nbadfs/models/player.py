"""Canonical player models shared across ingestion and optimizer layers."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator
from pydantic.config import ConfigDict

from nbadfs.config.settings import game_key


_POSITION_SPLIT = re.compile(r"[/,\s]+")


class PlayerRecord(BaseModel):
    """Normalized per-slate player snapshot used by optimizer pipelines."""

    player_id: str = Field(..., min_length=1)
    name: str
    team: str
    opponent: Optional[str] = None
    positions: List[str]
    salary: int = Field(..., gt=0)
    projected_points: float = Field(..., ge=0.0)
    floor: Optional[float] = None
    ceiling: Optional[float] = None
    volatility: Optional[float] = Field(default=None, ge=0.0)
    boom_probability: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    bust_probability: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    ownership: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    usage_rate: Optional[float] = None
    rest_days: Optional[int] = None
    projected_minutes: Optional[float] = None
    vegas_spread: Optional[float] = None
    injury_status: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("positions", mode="before")
    @classmethod
    def _split_positions(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [token.upper() for token in _POSITION_SPLIT.split(value) if token]
        if isinstance(value, (list, tuple)):
            return [str(token).strip().upper() for token in value if str(token).strip()]
        return value

    @field_validator("team", "opponent")
    @classmethod
    def _upper_team(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip().upper()

    @model_validator(mode="after")
    def _check_distribution(self) -> "PlayerRecord":
        if self.floor is not None and self.ceiling is not None:
            if not self.floor <= self.projected_points <= self.ceiling:
                raise ValueError(
                    f"player {self.player_id}: expected floor <= projected_points <= ceiling, "
                    f"got {self.floor} / {self.projected_points} / {self.ceiling}"
                )
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def leverage_score(self) -> float:
        if self.boom_probability is None:
            return 0.0
        return self.boom_probability * 100.0 / ((self.ownership or 0.0) + 1.0)

    @property
    def game_key(self) -> str:
        return game_key(self.team, self.opponent)
