"""Validated optimization settings with per-mode defaults."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict

from .roster import CLASSIC_RULES, SALARY_CAP


class Mode(str, Enum):
    CASH = "cash"
    GPP = "gpp"


class GppStrategy(str, Enum):
    MAX_LEVERAGE = "max_leverage"
    BALANCED = "balanced"
    CONTRARIAN = "contrarian"


DEFAULT_MIN_SALARY = {Mode.CASH: 49_000, Mode.GPP: 47_000}

# Production thresholds per mode; ``OptimizationSettings()`` leaves them off.
MODE_PRESETS: dict[Mode, dict[str, Any]] = {
    Mode.CASH: {
        "min_floor": 30.0,
        "max_volatility": 0.20,
        "max_bust_probability": 25.0,
        "min_projected_minutes": 28.0,
        "avoid_blowouts": True,
        "min_projection": 25.0,
    },
    Mode.GPP: {
        "gpp_strategy": GppStrategy.BALANCED,
        "min_leverage_score": 2.5,
        "min_boom_probability": 20.0,
        "min_ceiling": 50.0,
        "max_chalk_players": 2,
        "min_projection": 20.0,
    },
}


_GAME_SPLIT = re.compile(r"\s*(?:@|\bvs\.?\b|\bat\b)\s*", re.IGNORECASE)


def game_key(team: str, opponent: Optional[str]) -> str:
    """Canonical game identifier: both team codes sorted and joined by ``@``."""

    if not opponent:
        return team
    return "@".join(sorted((team, opponent)))


class TeamStack(BaseModel):
    """Require at least ``min_players`` from ``team`` in each lineup."""

    team: str = Field(..., min_length=1)
    min_players: int = Field(default=2, ge=1, le=8)

    model_config = ConfigDict(frozen=True)

    @field_validator("team")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()


class GameStack(BaseModel):
    """Require at least ``min_players`` from one game (``"LAL@BOS"`` or ``"LAL vs BOS"``)."""

    game: str = Field(..., min_length=1)
    min_players: int = Field(default=2, ge=1, le=8)

    model_config = ConfigDict(frozen=True)

    @field_validator("game")
    @classmethod
    def _canonical_game(cls, value: str) -> str:
        parts = [part.strip().upper() for part in _GAME_SPLIT.split(value.strip()) if part.strip()]
        if len(parts) != 2:
            raise ValueError(f"game must name two teams, got {value!r}")
        return game_key(parts[0], parts[1])


class OptimizationSettings(BaseModel):
    """Structured request settings, validated once before any search."""

    mode: Mode = Mode.CASH
    num_lineups: int = Field(default=1, gt=0, le=500)
    salary_cap: int = Field(default=SALARY_CAP, gt=0)
    min_salary: int = Field(default=DEFAULT_MIN_SALARY[Mode.CASH], ge=0)

    locked_player_ids: List[str] = Field(default_factory=list)
    excluded_player_ids: List[str] = Field(default_factory=list)

    # Cash thresholds
    min_floor: Optional[float] = Field(default=None, ge=0.0)
    max_volatility: Optional[float] = Field(default=None, ge=0.0)
    max_bust_probability: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    min_projected_minutes: Optional[float] = Field(default=None, ge=0.0)
    avoid_blowouts: bool = False
    blowout_spread: float = Field(default=10.0, ge=0.0)

    # GPP thresholds
    gpp_strategy: GppStrategy = GppStrategy.BALANCED
    min_leverage_score: Optional[float] = Field(default=None, ge=0.0)
    min_boom_probability: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    min_ceiling: Optional[float] = Field(default=None, ge=0.0)
    max_chalk_players: Optional[int] = Field(default=None, ge=0, le=8)
    chalk_ownership: float = Field(default=25.0, ge=0.0, le=100.0)
    randomness: float = Field(default=0.0, ge=0.0, le=30.0)

    # Shared filters
    filter_injured: bool = True
    min_rest_days: Optional[int] = Field(default=None, ge=0)
    min_usage: Optional[float] = Field(default=None, ge=0.0)
    min_projection: Optional[float] = Field(default=None, ge=0.0)

    # Exposure (percent of the batch)
    max_exposure_chalk: float = Field(default=30.0, ge=0.0, le=100.0)
    max_exposure_mid: float = Field(default=50.0, ge=0.0, le=100.0)
    max_exposure_leverage: float = Field(default=70.0, ge=0.0, le=100.0)
    mid_ownership: float = Field(default=10.0, ge=0.0, le=100.0)
    min_exposure: float = Field(default=0.0, ge=0.0, le=100.0)

    # Diversity
    max_players_per_team: int = Field(default=3, ge=1, le=8)
    min_teams: int = Field(default=6, ge=1, le=8)
    min_games: int = Field(default=3, ge=1, le=8)
    team_stacks: List[TeamStack] = Field(default_factory=list)
    game_stacks: List[GameStack] = Field(default_factory=list)

    seed: int = 0
    parallel_jobs: int = Field(default=1, ge=1, le=32)
    wave_size: int = Field(default=4, ge=1, le=64)

    model_config = ConfigDict(frozen=True)

    @field_validator("locked_player_ids", "excluded_player_ids", mode="before")
    @classmethod
    def _dedupe_ids(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, (list, tuple, set, frozenset)):
            return value
        seen: list[str] = []
        for pid in value:
            pid = str(pid).strip()
            if pid and pid not in seen:
                seen.append(pid)
        return seen

    @model_validator(mode="before")
    @classmethod
    def _default_min_salary(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("min_salary") is None:
            data = dict(data)
            data["min_salary"] = DEFAULT_MIN_SALARY[Mode(data.get("mode", Mode.CASH))]
        return data

    @model_validator(mode="after")
    def _check_consistency(self) -> "OptimizationSettings":
        if self.salary_cap != CLASSIC_RULES.salary_cap:
            raise ValueError(
                f"salary_cap is fixed at {CLASSIC_RULES.salary_cap}, got {self.salary_cap}"
            )
        if self.min_salary > self.salary_cap:
            raise ValueError(
                f"min_salary ({self.min_salary}) exceeds salary_cap ({self.salary_cap})"
            )
        conflicts = sorted(set(self.locked_player_ids) & set(self.excluded_player_ids))
        if conflicts:
            raise ValueError(f"players both locked and excluded: {', '.join(conflicts)}")
        if len(self.locked_player_ids) > CLASSIC_RULES.roster_size:
            raise ValueError(
                f"cannot lock {len(self.locked_player_ids)} players into a "
                f"{CLASSIC_RULES.roster_size}-slot lineup"
            )
        if self.mid_ownership > self.chalk_ownership:
            raise ValueError("mid_ownership must not exceed chalk_ownership")
        stacked = sum(rule.min_players for rule in self.team_stacks)
        if stacked > CLASSIC_RULES.roster_size:
            raise ValueError("team stacks require more players than a lineup holds")
        for rule in self.team_stacks:
            if rule.min_players > self.max_players_per_team:
                raise ValueError(
                    f"team stack {rule.team} needs {rule.min_players} players but "
                    f"max_players_per_team is {self.max_players_per_team}"
                )
        return self

    @classmethod
    def preset(cls, mode: Mode | str, **overrides: Any) -> "OptimizationSettings":
        """Return settings carrying the production thresholds for ``mode``."""

        mode = Mode(mode)
        values: dict[str, Any] = {"mode": mode, **MODE_PRESETS[mode]}
        values.update(overrides)
        return cls(**values)

    @property
    def is_gpp(self) -> bool:
        return self.mode is Mode.GPP

    def tier_for(self, ownership: Optional[float]) -> str:
        own = ownership or 0.0
        if own >= self.chalk_ownership:
            return "chalk"
        if own >= self.mid_ownership:
            return "mid"
        return "leverage"

    def exposure_cap(self, tier: str) -> float:
        """Return the maximum exposure fraction (0-1) for an ownership tier."""

        if tier == "chalk":
            return self.max_exposure_chalk / 100.0
        if tier == "mid":
            return self.max_exposure_mid / 100.0
        return self.max_exposure_leverage / 100.0
