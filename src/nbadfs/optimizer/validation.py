"""Hard-constraint checks shared by the search and the ``validate`` operation."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from nbadfs.config.roster import CLASSIC_RULES, SALARY_CAP, SlotKind
from nbadfs.config.settings import OptimizationSettings
from nbadfs.models import PlayerRecord
from nbadfs.optimizer.eligibility import eligible_slots, max_slot_matching


@dataclass(frozen=True)
class Violation:
    code: str
    message: str


@dataclass(frozen=True)
class ValidationReport:
    valid: bool
    violations: Tuple[Violation, ...]
    total_salary: int
    remaining_salary: int
    projected_points: float
    assignments: Tuple[Tuple[SlotKind, PlayerRecord], ...]

    @property
    def codes(self) -> Tuple[str, ...]:
        return tuple(violation.code for violation in self.violations)


Assignment = Tuple[SlotKind, PlayerRecord]
Entry = Union[PlayerRecord, Tuple[Union[SlotKind, str, None], PlayerRecord]]


def salary_violations(total_salary: int, *, min_salary: int, salary_cap: int) -> List[Violation]:
    violations: List[Violation] = []
    if total_salary > salary_cap:
        violations.append(
            Violation("salary_over_cap", f"Over salary cap by ${total_salary - salary_cap}")
        )
    if total_salary < min_salary:
        violations.append(
            Violation(
                "salary_under_minimum",
                f"Below minimum salary of ${min_salary} by ${min_salary - total_salary}",
            )
        )
    return violations


def settings_violations(
    players: Sequence[PlayerRecord],
    settings: OptimizationSettings,
) -> List[Violation]:
    """Constraints that depend on the request: locks, excludes, diversity, chalk, stacks."""

    violations: List[Violation] = []
    ids = {player.player_id for player in players}

    for pid in settings.locked_player_ids:
        if pid not in ids:
            violations.append(Violation("missing_lock", f"Locked player {pid} is not in the lineup"))
    for pid in settings.excluded_player_ids:
        if pid in ids:
            violations.append(Violation("excluded_player", f"Excluded player {pid} is in the lineup"))

    team_counts = Counter(player.team for player in players)
    for team, count in sorted(team_counts.items()):
        if count > settings.max_players_per_team:
            violations.append(
                Violation(
                    "team_limit",
                    f"{count} players from {team} (max {settings.max_players_per_team})",
                )
            )
    if len(team_counts) < settings.min_teams:
        violations.append(
            Violation("min_teams", f"{len(team_counts)} teams represented (min {settings.min_teams})")
        )
    game_counts = Counter(player.game_key for player in players)
    if len(game_counts) < settings.min_games:
        violations.append(
            Violation("min_games", f"{len(game_counts)} games represented (min {settings.min_games})")
        )

    if settings.is_gpp and settings.max_chalk_players is not None:
        chalk = [p for p in players if (p.ownership or 0.0) >= settings.chalk_ownership]
        if len(chalk) > settings.max_chalk_players:
            violations.append(
                Violation(
                    "chalk_limit",
                    f"{len(chalk)} chalk players (max {settings.max_chalk_players})",
                )
            )

    for stack in settings.team_stacks:
        if team_counts.get(stack.team, 0) < stack.min_players:
            violations.append(
                Violation(
                    "team_stack",
                    f"{team_counts.get(stack.team, 0)} players from {stack.team} "
                    f"(stack needs {stack.min_players})",
                )
            )
    for stack in settings.game_stacks:
        if game_counts.get(stack.game, 0) < stack.min_players:
            violations.append(
                Violation(
                    "game_stack",
                    f"{game_counts.get(stack.game, 0)} players from {stack.game} "
                    f"(stack needs {stack.min_players})",
                )
            )
    return violations


def _coerce_slot(value: Union[SlotKind, str, None]) -> Optional[SlotKind]:
    if value is None or isinstance(value, SlotKind):
        return value
    try:
        return SlotKind(str(value).strip().upper())
    except ValueError:
        return None


def _resolve_assignments(
    entries: Sequence[Entry],
) -> Tuple[List[Assignment], List[Violation]]:
    violations: List[Violation] = []
    explicit: List[Tuple[Optional[SlotKind], PlayerRecord]] = []
    raw_slots: List[object] = []
    for entry in entries:
        if isinstance(entry, PlayerRecord):
            explicit.append((None, entry))
            raw_slots.append(None)
        else:
            slot_value, record = entry
            explicit.append((_coerce_slot(slot_value), record))
            raw_slots.append(slot_value)

    if all(slot is None for slot in raw_slots):
        records = [record for _, record in explicit]
        slot_sets = [eligible_slots(record.positions) for record in records]
        matching = max_slot_matching(slot_sets)
        if len(matching) < min(len(records), CLASSIC_RULES.roster_size):
            open_slots = [slot.value for slot in CLASSIC_RULES.roster_order if slot not in matching]
            violations.append(
                Violation(
                    "slot_mismatch",
                    "Players cannot be arranged into slots; unfilled: " + ", ".join(open_slots),
                )
            )
        by_player = {idx: slot for slot, idx in matching.items()}
        assignments = [
            (by_player[idx], record) for idx, record in enumerate(records) if idx in by_player
        ]
        assignments.sort(key=lambda item: CLASSIC_RULES.roster_order.index(item[0]))
        return assignments, violations

    assignments: List[Assignment] = []
    for (slot, record), raw in zip(explicit, raw_slots):
        if slot is None:
            violations.append(
                Violation("slot_mismatch", f"{record.name} has unknown slot {raw!r}")
            )
            continue
        if slot not in eligible_slots(record.positions):
            violations.append(
                Violation(
                    "slot_mismatch",
                    f"{record.name} ({'/'.join(record.positions) or '-'}) cannot play {slot.value}",
                )
            )
        assignments.append((slot, record))

    slot_counts = Counter(slot for slot, _ in assignments)
    repeated = [slot.value for slot, count in slot_counts.items() if count > 1]
    missing = [slot.value for slot in CLASSIC_RULES.roster_order if slot not in slot_counts]
    if repeated:
        violations.append(Violation("slot_mismatch", "Slots assigned more than once: " + ", ".join(repeated)))
    if missing and len(entries) == CLASSIC_RULES.roster_size:
        violations.append(Violation("slot_mismatch", "Slots left empty: " + ", ".join(missing)))
    return assignments, violations


def validate_lineup(
    entries: Sequence[Entry],
    *,
    min_salary: Optional[int] = None,
    salary_cap: int = SALARY_CAP,
    settings: Optional[OptimizationSettings] = None,
) -> ValidationReport:
    """Check a fixed set of eight players without searching.

    ``entries`` holds either bare players (slots are resolved by matching)
    or ``(slot, player)`` pairs. When ``settings`` is given, locks,
    excludes and diversity constraints are checked too.
    """

    if min_salary is None:
        min_salary = settings.min_salary if settings is not None else 0

    records = [entry if isinstance(entry, PlayerRecord) else entry[1] for entry in entries]
    violations: List[Violation] = []

    if len(records) != CLASSIC_RULES.roster_size:
        violations.append(
            Violation(
                "slot_count",
                f"Lineup has {len(records)} players; {CLASSIC_RULES.roster_size} required",
            )
        )

    id_counts = Counter(record.player_id for record in records)
    duplicates = sorted(pid for pid, count in id_counts.items() if count > 1)
    if duplicates:
        violations.append(Violation("duplicate_player", "Duplicate players in lineup: " + ", ".join(duplicates)))

    assignments, slot_violations = _resolve_assignments(entries)
    violations.extend(slot_violations)

    total_salary = sum(record.salary for record in records)
    violations.extend(salary_violations(total_salary, min_salary=min_salary, salary_cap=salary_cap))

    if settings is not None:
        violations.extend(settings_violations(records, settings))

    return ValidationReport(
        valid=not violations,
        violations=tuple(violations),
        total_salary=total_salary,
        remaining_salary=salary_cap - total_salary,
        projected_points=sum(record.projected_points for record in records),
        assignments=tuple(assignments),
    )


def assignment_is_valid(
    assignments: Sequence[Assignment],
    settings: OptimizationSettings,
) -> bool:
    """Fast path used by the search: every hard constraint holds for ``assignments``."""

    if len(assignments) != CLASSIC_RULES.roster_size:
        return False
    slots = {slot for slot, _ in assignments}
    if len(slots) != CLASSIC_RULES.roster_size:
        return False
    records = [record for _, record in assignments]
    if len({record.player_id for record in records}) != len(records):
        return False
    for slot, record in assignments:
        if slot not in eligible_slots(record.positions):
            return False
    total_salary = sum(record.salary for record in records)
    if total_salary > settings.salary_cap or total_salary < settings.min_salary:
        return False
    return not settings_violations(records, settings)
