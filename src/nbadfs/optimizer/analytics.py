"""Aggregate metrics for produced lineups and batch exposure."""

from __future__ import annotations

from collections import Counter
from statistics import fmean
from typing import Dict, List, Optional, Sequence

from nbadfs.config.roster import CLASSIC_RULES
from nbadfs.config.settings import OptimizationSettings
from nbadfs.models import ExposureEntry, LineupPlayer, LineupResult, LineupSlot
from nbadfs.optimizer.constructor import Assignment
from nbadfs.optimizer.scoring import ScoredPlayer


def _mean(values: Sequence[Optional[float]]) -> float:
    present = [value for value in values if value is not None]
    return fmean(present) if present else 0.0


def _to_lineup_player(player: ScoredPlayer) -> LineupPlayer:
    record = player.record
    return LineupPlayer(
        player_id=record.player_id,
        name=record.name,
        team=record.team,
        opponent=record.opponent,
        positions=tuple(record.positions),
        salary=record.salary,
        projected_points=record.projected_points,
        floor=record.floor,
        ceiling=record.ceiling,
        ownership=record.ownership,
        leverage_score=record.leverage_score,
        volatility=record.volatility,
        boom_probability=record.boom_probability,
        bust_probability=record.bust_probability,
        utility=player.base_utility,
    )


def package_lineup(assignment: Assignment, idx: int) -> LineupResult:
    """Freeze a slot assignment into a :class:`LineupResult` with aggregates.

    Missing floors and ceilings fall back to the projection so totals stay
    comparable across players with partial metrics.
    """

    ordered = [(slot, assignment[slot]) for slot in CLASSIC_RULES.roster_order]
    players = [_to_lineup_player(player) for _, player in ordered]
    records = [player.record for _, player in ordered]

    total_salary = sum(p.salary for p in players)
    projected = sum(p.projected_points for p in players)
    teams = tuple(sorted({p.team for p in players}))
    games = {record.game_key for record in records}

    return LineupResult(
        lineup_id=f"L{idx + 1:03}",
        slots=tuple(LineupSlot(slot=slot, player=player) for (slot, _), player in zip(ordered, players)),
        total_salary=total_salary,
        remaining_salary=CLASSIC_RULES.salary_cap - total_salary,
        projected_points=round(projected, 2),
        total_floor=round(sum(p.floor if p.floor is not None else p.projected_points for p in players), 2),
        total_ceiling=round(sum(p.ceiling if p.ceiling is not None else p.projected_points for p in players), 2),
        avg_ownership=round(fmean(p.ownership or 0.0 for p in players), 2),
        total_leverage=round(sum(p.leverage_score for p in players), 2),
        avg_volatility=round(_mean([p.volatility for p in players]), 4),
        avg_boom_probability=round(_mean([p.boom_probability for p in players]), 2),
        avg_bust_probability=round(_mean([p.bust_probability for p in players]), 2),
        total_utility=round(sum(p.utility for p in players), 4),
        teams=teams,
        game_count=len(games),
        salary_efficiency=round(projected / (total_salary / 1000.0), 3) if total_salary else 0.0,
    )


def exposure_report(
    lineups: Sequence[LineupResult],
    settings: OptimizationSettings,
) -> List[ExposureEntry]:
    """Per-player appearance counts across ``lineups``, most used first."""

    if not lineups:
        return []

    counts: Counter[str] = Counter()
    players: Dict[str, LineupPlayer] = {}
    for lineup in lineups:
        for player in lineup.players:
            counts[player.player_id] += 1
            players.setdefault(player.player_id, player)

    total = len(lineups)
    entries = [
        ExposureEntry(
            player_id=pid,
            name=players[pid].name,
            team=players[pid].team,
            salary=players[pid].salary,
            count=count,
            exposure=round(count * 100.0 / total, 2),
            tier=settings.tier_for(players[pid].ownership),
            ownership=players[pid].ownership,
            leverage_score=players[pid].leverage_score,
        )
        for pid, count in counts.items()
    ]
    entries.sort(key=lambda entry: (-entry.count, entry.name, entry.player_id))
    return entries
