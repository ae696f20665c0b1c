"""Lineup optimization engine: filtering, scoring, search and batching."""

from .errors import EmptyPoolError, InfeasibleError, OptimizerError, PartialBatchError
from .service import ExposureGap, OptimizationResult, build_candidate, generate_lineups, optimize
from .validation import ValidationReport, Violation, validate_lineup

__all__ = [
    "EmptyPoolError",
    "ExposureGap",
    "InfeasibleError",
    "OptimizationResult",
    "OptimizerError",
    "PartialBatchError",
    "ValidationReport",
    "Violation",
    "build_candidate",
    "generate_lineups",
    "optimize",
    "validate_lineup",
]
