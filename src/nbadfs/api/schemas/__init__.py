"""Pydantic models for API I/O."""

from .lineup import (
    LineupPlayerResponse,
    LineupResponse,
    LineupSlotResponse,
    OptimizeRequest,
    PlayerExposureResponse,
)
from .batch import ExposureGapResponse, FilterSummaryResponse, NoticeResponse, OptimizeResponse
from .validation import (
    SlotAssignmentResponse,
    ValidateEntry,
    ValidateRequest,
    ValidationReportResponse,
    ViolationResponse,
)

__all__ = [
    "ExposureGapResponse",
    "FilterSummaryResponse",
    "LineupPlayerResponse",
    "LineupResponse",
    "LineupSlotResponse",
    "NoticeResponse",
    "OptimizeRequest",
    "OptimizeResponse",
    "PlayerExposureResponse",
    "SlotAssignmentResponse",
    "ValidateEntry",
    "ValidateRequest",
    "ValidationReportResponse",
    "ViolationResponse",
]
