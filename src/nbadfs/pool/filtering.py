"""Reduce a slate's player pool to the candidates a request allows."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from nbadfs.config.roster import CLASSIC_RULES
from nbadfs.config.settings import Mode, OptimizationSettings
from nbadfs.models import PlayerRecord
from nbadfs.optimizer.eligibility import eligible_slots, max_slot_matching, unfillable_slots
from nbadfs.optimizer.errors import EmptyPoolError


logger = logging.getLogger(__name__)

# Probable and healthy players stay in the pool.
ACTIVE_INJURY_DESIGNATIONS = frozenset(
    {"OUT", "O", "DOUBTFUL", "D", "QUESTIONABLE", "Q", "GTD", "GAME TIME DECISION"}
)


@dataclass(frozen=True)
class FilterSummary:
    """How many players each filter stage removed."""

    input_players: int
    kept_players: int
    dropped: Dict[str, int] = field(default_factory=dict)

    @property
    def total_dropped(self) -> int:
        return self.input_players - self.kept_players


@dataclass(frozen=True)
class FilterResult:
    players: List[PlayerRecord]
    summary: FilterSummary


Check = Tuple[str, Callable[[PlayerRecord], bool]]


def is_injured(record: PlayerRecord) -> bool:
    status = (record.injury_status or "").strip().upper()
    return status in ACTIVE_INJURY_DESIGNATIONS


def _at_least(value: Optional[float], threshold: float) -> bool:
    return value is not None and value >= threshold


def _at_most(value: Optional[float], threshold: float) -> bool:
    return value is not None and value <= threshold


def _mode_checks(settings: OptimizationSettings) -> List[Check]:
    """Threshold predicates for the active mode; a missing metric fails."""

    checks: List[Check] = []
    if settings.mode is Mode.CASH:
        if settings.min_floor is not None:
            checks.append(("min_floor", lambda r: _at_least(r.floor, settings.min_floor)))
        if settings.max_volatility is not None:
            checks.append(("max_volatility", lambda r: _at_most(r.volatility, settings.max_volatility)))
        if settings.max_bust_probability is not None:
            checks.append(
                ("max_bust_probability", lambda r: _at_most(r.bust_probability, settings.max_bust_probability))
            )
        if settings.min_projected_minutes is not None:
            checks.append(
                ("min_projected_minutes", lambda r: _at_least(r.projected_minutes, settings.min_projected_minutes))
            )
    else:
        if settings.min_leverage_score is not None:
            checks.append(("min_leverage_score", lambda r: r.leverage_score >= settings.min_leverage_score))
        if settings.min_boom_probability is not None:
            checks.append(
                ("min_boom_probability", lambda r: _at_least(r.boom_probability, settings.min_boom_probability))
            )
        if settings.min_ceiling is not None:
            checks.append(("min_ceiling", lambda r: _at_least(r.ceiling, settings.min_ceiling)))
    return checks


def _shared_checks(settings: OptimizationSettings) -> List[Check]:
    checks: List[Check] = []
    if settings.min_rest_days is not None:
        checks.append(("min_rest_days", lambda r: _at_least(r.rest_days, settings.min_rest_days)))
    if settings.min_usage is not None:
        checks.append(("min_usage", lambda r: _at_least(r.usage_rate, settings.min_usage)))
    if settings.min_projection is not None:
        checks.append(("min_projection", lambda r: r.projected_points >= settings.min_projection))
    return checks


def _ensure_fillable(players: Sequence[PlayerRecord], summary: FilterSummary) -> None:
    roster_size = CLASSIC_RULES.roster_size
    details = tuple(f"{reason}: {count} dropped" for reason, count in summary.dropped.items() if count)
    if len(players) < roster_size:
        raise EmptyPoolError(
            f"only {len(players)} players remain after filters; {roster_size} required",
            details,
        )
    slot_sets = [eligible_slots(record.positions) for record in players]
    empty = unfillable_slots(slot_sets)
    if empty:
        raise EmptyPoolError(
            "no eligible " + ", ".join(slot.value for slot in empty) + " after filters",
            details,
        )
    matching = max_slot_matching(slot_sets)
    if len(matching) < roster_size:
        open_slots = [slot.value for slot in CLASSIC_RULES.roster_order if slot not in matching]
        raise EmptyPoolError(
            "remaining players cannot fill every slot at once; short at " + ", ".join(open_slots),
            details,
        )


def filter_pool(records: Sequence[PlayerRecord], settings: OptimizationSettings) -> FilterResult:
    """Apply injury, exclusion, mode and shared filters in that order.

    Locked players bypass every stage except exclusion (a player cannot be
    both, settings validation rejects that). Raises
    :class:`~nbadfs.optimizer.errors.EmptyPoolError` when the survivors
    cannot fill a lineup.
    """

    locked = set(settings.locked_player_ids)
    excluded = set(settings.excluded_player_ids)
    checks = _mode_checks(settings) + _shared_checks(settings)
    dropped: Counter[str] = Counter()
    kept: List[PlayerRecord] = []

    for record in records:
        is_locked = record.player_id in locked
        if settings.filter_injured and not is_locked and is_injured(record):
            dropped["injured"] += 1
            continue
        if record.player_id in excluded:
            dropped["excluded"] += 1
            continue
        if not is_locked:
            failed = next((reason for reason, check in checks if not check(record)), None)
            if failed is not None:
                dropped[failed] += 1
                continue
        kept.append(record)

    summary = FilterSummary(
        input_players=len(records),
        kept_players=len(kept),
        dropped=dict(sorted(dropped.items())),
    )
    logger.info(
        "Player pool filtered from %s to %s (%s)",
        summary.input_players,
        summary.kept_players,
        ", ".join(f"{reason}={count}" for reason, count in summary.dropped.items()) or "no drops",
    )
    _ensure_fillable(kept, summary)
    return FilterResult(players=kept, summary=summary)


__all__ = [
    "ACTIVE_INJURY_DESIGNATIONS",
    "FilterResult",
    "FilterSummary",
    "filter_pool",
    "is_injured",
]
