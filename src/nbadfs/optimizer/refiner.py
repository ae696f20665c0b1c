"""Improve a constructed lineup with constraint-preserving single-slot swaps."""

from __future__ import annotations

import logging
from typing import AbstractSet, FrozenSet, Sequence

from nbadfs.config.roster import CLASSIC_RULES
from nbadfs.config.settings import OptimizationSettings
from nbadfs.optimizer.constructor import Assignment, lineup_signature
from nbadfs.optimizer.scoring import ScoredPlayer
from nbadfs.optimizer.validation import assignment_is_valid


logger = logging.getLogger(__name__)

DEFAULT_MAX_STALE = 200


def _total_utility(assignment: Assignment) -> float:
    return sum(player.utility for player in assignment.values())


def refine_lineup(
    assignment: Assignment,
    pool: Sequence[ScoredPlayer],
    settings: OptimizationSettings,
    *,
    blocked: AbstractSet[str] = frozenset(),
    forbidden: AbstractSet[FrozenSet[str]] = frozenset(),
    max_stale: int = DEFAULT_MAX_STALE,
) -> Assignment:
    """Hill-climb on total utility by swapping one slot at a time.

    Each candidate swap is re-validated against every hard constraint;
    only strictly improving swaps are kept. Stops at a local optimum (a
    full pass without an accepted swap) or after ``max_stale`` consecutive
    rejected attempts.
    """

    current = dict(assignment)
    locked = set(settings.locked_player_ids)
    candidates = sorted(
        (p for p in pool if p.slots and p.player_id not in blocked and p.player_id not in locked),
        key=ScoredPlayer.rank_key,
    )
    stale = 0
    swaps = 0

    improved = True
    while improved and stale < max_stale:
        improved = False
        for slot in CLASSIC_RULES.roster_order:
            incumbent = current[slot]
            if incumbent.player_id in locked:
                continue
            in_lineup = {p.player_id for p in current.values()}
            for challenger in candidates:
                if challenger.utility <= incumbent.utility:
                    break
                if slot not in challenger.slots or challenger.player_id in in_lineup:
                    continue
                trial = dict(current)
                trial[slot] = challenger
                pairs = [(s, p.record) for s, p in trial.items()]
                if lineup_signature(trial) in forbidden or not assignment_is_valid(pairs, settings):
                    stale += 1
                    if stale >= max_stale:
                        break
                    continue
                current = trial
                swaps += 1
                stale = 0
                improved = True
                break
            if stale >= max_stale:
                break

    if swaps:
        logger.debug(
            "Refined lineup with %s swap(s); utility %.2f -> %.2f",
            swaps,
            _total_utility(assignment),
            _total_utility(current),
        )
    return current
