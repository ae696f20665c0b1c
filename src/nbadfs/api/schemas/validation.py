from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from nbadfs.config import OptimizationSettings
from nbadfs.models import PlayerRecord


class ValidateEntry(BaseModel):
    slot: str | None = None
    player: PlayerRecord


class ValidateRequest(BaseModel):
    players: List[ValidateEntry] = Field(default_factory=list)
    min_salary: int | None = Field(default=None, ge=0)
    settings: OptimizationSettings | None = None


class ViolationResponse(BaseModel):
    code: str
    message: str


class SlotAssignmentResponse(BaseModel):
    slot: str
    player_id: str
    name: str


class ValidationReportResponse(BaseModel):
    valid: bool
    violations: List[ViolationResponse]
    total_salary: int
    remaining_salary: int
    projected_points: float
    assignments: List[SlotAssignmentResponse]
