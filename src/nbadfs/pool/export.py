"""Contest CSV export helpers for produced lineups."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from io import StringIO
from typing import Sequence

from nbadfs.config.roster import get_rules
from nbadfs.models import LineupResult


class ContestExportError(RuntimeError):
    """Raised when a lineup cannot be exported for a contest template."""


@dataclass(frozen=True)
class ContestTemplate:
    """Representation of a contest upload schema."""

    site: str
    sport: str
    headers: tuple[str, ...]
    slot_order: tuple[str, ...]


def _resolve_template(site: str, sport: str) -> ContestTemplate:
    rules = get_rules(site, sport)
    slot_order = tuple(slot.value for slot in rules.roster_order)
    return ContestTemplate(
        site=rules.site,
        sport=rules.sport,
        headers=("EntryName", *slot_order),
        slot_order=slot_order,
    )


def _ordered_ids(lineup: LineupResult, slot_order: Sequence[str]) -> list[str]:
    by_slot = {entry.slot.value: entry.player.player_id for entry in lineup.slots}
    missing = [slot for slot in slot_order if slot not in by_slot]
    if missing:
        raise ContestExportError(
            f"Lineup {lineup.lineup_id} missing player for slot {', '.join(missing)}"
        )
    return [by_slot[slot] for slot in slot_order]


def export_lineups_to_csv(
    lineups: Sequence[LineupResult],
    *,
    site: str = "DK",
    sport: str = "NBA",
    entry_names: Sequence[str] | None = None,
) -> str:
    """Render lineups as an upload CSV with one column per roster slot."""

    if entry_names is not None and len(entry_names) != len(lineups):
        raise ContestExportError("entry_names length must match lineups length")

    template = _resolve_template(site, sport)
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(template.headers)
    for idx, lineup in enumerate(lineups):
        entry_name = entry_names[idx] if entry_names is not None else lineup.lineup_id
        writer.writerow([entry_name, *_ordered_ids(lineup, template.slot_order)])
    return buffer.getvalue()


SUMMARY_HEADERS = (
    "lineup_id",
    "salary",
    "remaining_salary",
    "projected_points",
    "total_floor",
    "total_ceiling",
    "avg_ownership",
    "total_leverage",
    "teams",
    "games",
    "player_ids",
    "player_names",
)


def export_lineup_summary(lineups: Sequence[LineupResult]) -> str:
    """One row of aggregates per lineup, players listed in slot order."""

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(SUMMARY_HEADERS)
    for lineup in lineups:
        writer.writerow(
            [
                lineup.lineup_id,
                lineup.total_salary,
                lineup.remaining_salary,
                f"{lineup.projected_points:.2f}",
                f"{lineup.total_floor:.2f}",
                f"{lineup.total_ceiling:.2f}",
                f"{lineup.avg_ownership:.2f}",
                f"{lineup.total_leverage:.2f}",
                " ".join(lineup.teams),
                lineup.game_count,
                " ".join(lineup.player_ids),
                " | ".join(player.name for player in lineup.players),
            ]
        )
    return buffer.getvalue()


__all__ = [
    "ContestExportError",
    "SUMMARY_HEADERS",
    "export_lineup_summary",
    "export_lineups_to_csv",
]
