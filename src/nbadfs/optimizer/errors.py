"""Recoverable optimizer failures.

Settings problems surface earlier as :class:`pydantic.ValidationError`; the
errors here are raised by the search components and converted into a
:class:`~nbadfs.models.BatchNotice` by the orchestrator.
"""

from __future__ import annotations

from typing import Sequence

from nbadfs.models import LineupResult


class OptimizerError(Exception):
    kind = "infeasible"

    def __init__(self, message: str, details: Sequence[str] = ()):
        super().__init__(message)
        self.message = message
        self.details = tuple(details)


class EmptyPoolError(OptimizerError):
    """Too few players survive filtering to fill every slot."""

    kind = "empty_pool"


class InfeasibleError(OptimizerError):
    """No valid lineup completion exists within the search budget."""

    kind = "infeasible"


class PartialBatchError(OptimizerError):
    kind = "partial_batch"

    def __init__(self, lineups: list[LineupResult], requested: int, message: str, details: Sequence[str] = ()):
        super().__init__(message, details)
        self.lineups = lineups
        self.requested = requested
