"""Build one lineup by most-constrained-slot search with bounded backtracking."""

from __future__ import annotations

import logging
from collections import Counter
from typing import AbstractSet, Dict, FrozenSet, List, Optional, Sequence, Tuple

from nbadfs.config.roster import CLASSIC_RULES, SlotKind
from nbadfs.config.settings import OptimizationSettings
from nbadfs.optimizer.eligibility import max_slot_matching, slot_pool_counts
from nbadfs.optimizer.errors import InfeasibleError
from nbadfs.optimizer.scoring import ScoredPlayer
from nbadfs.optimizer.validation import assignment_is_valid


logger = logging.getLogger(__name__)

DEFAULT_NODE_BUDGET = 4000

Assignment = Dict[SlotKind, ScoredPlayer]


class _BudgetExhausted(Exception):
    pass


def lineup_signature(players: Sequence[ScoredPlayer] | Assignment) -> FrozenSet[str]:
    values = players.values() if isinstance(players, dict) else players
    return frozenset(player.player_id for player in values)


def _describe(player: ScoredPlayer) -> str:
    slots = ", ".join(slot.value for slot in CLASSIC_RULES.roster_order if slot in player.slots)
    return f"{player.record.name} ({slots or 'no slots'})"


def place_locked(
    locked: Sequence[ScoredPlayer],
    pool: Sequence[ScoredPlayer],
    settings: OptimizationSettings,
) -> Assignment:
    """Assign locked players to slots, scarcest slot first.

    Raises :class:`InfeasibleError` when the locks cannot all be seated or
    already break a lineup-wide cap on their own.
    """

    if not locked:
        return {}

    scarcity = slot_pool_counts(player.slots for player in pool)
    ranked = sorted(CLASSIC_RULES.roster_order, key=lambda slot: (scarcity[slot], CLASSIC_RULES.roster_order.index(slot)))
    slot_rank = {slot: rank for rank, slot in enumerate(ranked)}

    # Most constrained locks claim slots first.
    ordered = sorted(locked, key=lambda p: (len(p.slots), p.index))
    matching = max_slot_matching([p.slots for p in ordered], slot_order=slot_rank)
    if len(matching) < len(ordered):
        seated = set(matching.values())
        contested = sorted(
            {slot.value for idx, p in enumerate(ordered) if idx not in seated for slot in p.slots}
        )
        raise InfeasibleError(
            "locked players cannot all be placed: "
            + "; ".join(_describe(p) for p in ordered)
            + (f" (contested slots: {', '.join(contested)})" if contested else " (no eligible slots)"),
        )

    team_counts = Counter(p.team for p in ordered)
    for team, count in team_counts.items():
        if count > settings.max_players_per_team:
            raise InfeasibleError(
                f"{count} locked players from {team} exceed max_players_per_team "
                f"({settings.max_players_per_team})"
            )
    if settings.is_gpp and settings.max_chalk_players is not None:
        chalk = sum(1 for p in ordered if p.is_chalk)
        if chalk > settings.max_chalk_players:
            raise InfeasibleError(
                f"{chalk} locked chalk players exceed max_chalk_players ({settings.max_chalk_players})"
            )
    return {slot: ordered[idx] for slot, idx in matching.items()}


class LineupSearch:
    """Depth-first completion of a partial lineup.

    At each node the open slot with the fewest feasible candidates is
    filled next; candidates are tried in ``ScoredPlayer.rank_key`` order.
    """

    def __init__(
        self,
        pool: Sequence[ScoredPlayer],
        settings: OptimizationSettings,
        *,
        blocked: AbstractSet[str] = frozenset(),
        forbidden: AbstractSet[FrozenSet[str]] = frozenset(),
        node_budget: int = DEFAULT_NODE_BUDGET,
    ):
        self.settings = settings
        self.forbidden = forbidden
        self.node_budget = max(1, node_budget)
        self.nodes = 0
        self.rejections: Counter[str] = Counter()
        self.dead_slots: Counter[SlotKind] = Counter()
        self.pool = [p for p in pool if p.slots and (p.locked or p.player_id not in blocked)]
        self.by_slot: Dict[SlotKind, List[ScoredPlayer]] = {
            slot: sorted((p for p in self.pool if slot in p.slots), key=ScoredPlayer.rank_key)
            for slot in CLASSIC_RULES.roster_order
        }
        self.by_salary = sorted(self.pool, key=lambda p: (p.salary, p.index))
        self.stack_teams = {rule.team: rule.min_players for rule in settings.team_stacks}
        self.stack_games = {rule.game: rule.min_players for rule in settings.game_stacks}

    def run(self, seed_assignment: Assignment) -> Assignment:
        assignment = dict(seed_assignment)
        try:
            result = self._extend(assignment)
        except _BudgetExhausted:
            raise InfeasibleError(
                f"search budget of {self.node_budget} nodes exhausted without a valid lineup",
                self.diagnostics(),
            ) from None
        if result is None:
            raise InfeasibleError("no valid lineup satisfies the constraints", self.diagnostics())
        return result

    def diagnostics(self) -> List[str]:
        details = [
            f"slot {slot.value} ran out of candidates {count} time(s)"
            for slot, count in self.dead_slots.most_common(3)
        ]
        details.extend(
            f"{reason}: {count} rejection(s)" for reason, count in self.rejections.most_common(4)
        )
        return details

    def _fill_bounds(self, used: AbstractSet[str], k: int) -> Tuple[List[ScoredPlayer], List[ScoredPlayer]]:
        """The ``k + 1`` cheapest and most expensive unused players."""

        cheap: List[ScoredPlayer] = []
        for player in self.by_salary:
            if player.player_id not in used:
                cheap.append(player)
                if len(cheap) > k:
                    break
        dear: List[ScoredPlayer] = []
        for player in reversed(self.by_salary):
            if player.player_id not in used:
                dear.append(player)
                if len(dear) > k:
                    break
        return cheap, dear

    @staticmethod
    def _fill_excluding(bound: List[ScoredPlayer], k: int, candidate: ScoredPlayer) -> Optional[int]:
        if k == 0:
            return 0
        head = bound[:k]
        if any(p.player_id == candidate.player_id for p in head):
            head = [p for p in bound[: k + 1] if p.player_id != candidate.player_id]
        if len(head) < k:
            return None
        return sum(p.salary for p in head)

    def _feasible(self, assignment: Assignment) -> Dict[SlotKind, List[ScoredPlayer]]:
        chosen = list(assignment.values())
        used = {p.player_id for p in chosen}
        open_slots = [slot for slot in CLASSIC_RULES.roster_order if slot not in assignment]
        remaining_after = len(open_slots) - 1

        salary = sum(p.salary for p in chosen)
        teams = Counter(p.team for p in chosen)
        games = Counter(p.game for p in chosen)
        chalk = sum(1 for p in chosen if p.is_chalk)
        cheap, dear = self._fill_bounds(used, remaining_after)

        feasible: Dict[SlotKind, List[ScoredPlayer]] = {}
        verdicts: Dict[str, Optional[str]] = {}
        for slot in open_slots:
            options: List[ScoredPlayer] = []
            for player in self.by_slot[slot]:
                pid = player.player_id
                if pid in used:
                    continue
                if pid not in verdicts:
                    verdicts[pid] = self._reject_reason(
                        player,
                        salary=salary,
                        teams=teams,
                        games=games,
                        chalk=chalk,
                        cheap=cheap,
                        dear=dear,
                        remaining_after=remaining_after,
                    )
                    if verdicts[pid] is not None:
                        self.rejections[verdicts[pid]] += 1
                if verdicts[pid] is None:
                    options.append(player)
            feasible[slot] = options
        return feasible

    def _reject_reason(
        self,
        player: ScoredPlayer,
        *,
        salary: int,
        teams: Counter[str],
        games: Counter[str],
        chalk: int,
        cheap: List[ScoredPlayer],
        dear: List[ScoredPlayer],
        remaining_after: int,
    ) -> Optional[str]:
        settings = self.settings
        if teams[player.team] + 1 > settings.max_players_per_team:
            return "team limit"
        if settings.is_gpp and settings.max_chalk_players is not None:
            if player.is_chalk and chalk + 1 > settings.max_chalk_players:
                return "chalk limit"

        low = self._fill_excluding(cheap, remaining_after, player)
        high = self._fill_excluding(dear, remaining_after, player)
        if low is None or high is None:
            return "pool exhausted"
        if salary + player.salary + low > settings.salary_cap:
            return "salary cap"
        if salary + player.salary + high < settings.min_salary:
            return "minimum salary"

        team_total = len(teams) + (0 if player.team in teams else 1)
        if team_total + remaining_after < settings.min_teams:
            return "team diversity"
        game_total = len(games) + (0 if player.game in games else 1)
        if game_total + remaining_after < settings.min_games:
            return "game diversity"

        if self.stack_teams:
            short = sum(
                max(0, need - teams[team] - (1 if player.team == team else 0))
                for team, need in self.stack_teams.items()
            )
            if short > remaining_after:
                return "team stack"
        if self.stack_games:
            short = sum(
                max(0, need - games[game] - (1 if player.game == game else 0))
                for game, need in self.stack_games.items()
            )
            if short > remaining_after:
                return "game stack"
        return None

    def _extend(self, assignment: Assignment) -> Optional[Assignment]:
        self.nodes += 1
        if self.nodes > self.node_budget:
            raise _BudgetExhausted()

        if len(assignment) == CLASSIC_RULES.roster_size:
            if lineup_signature(assignment) in self.forbidden:
                self.rejections["duplicate lineup"] += 1
                return None
            pairs = [(slot, player.record) for slot, player in assignment.items()]
            if not assignment_is_valid(pairs, self.settings):
                self.rejections["final check"] += 1
                return None
            return assignment

        feasible = self._feasible(assignment)
        slot, options = min(
            feasible.items(),
            key=lambda item: (len(item[1]), CLASSIC_RULES.roster_order.index(item[0])),
        )
        if not options:
            self.dead_slots[slot] += 1
            return None

        for player in options:
            assignment[slot] = player
            result = self._extend(assignment)
            if result is not None:
                return result
            del assignment[slot]
        return None


def construct_lineup(
    pool: Sequence[ScoredPlayer],
    settings: OptimizationSettings,
    *,
    blocked: AbstractSet[str] = frozenset(),
    forbidden: AbstractSet[FrozenSet[str]] = frozenset(),
    node_budget: int = DEFAULT_NODE_BUDGET,
) -> Assignment:
    """Return one slot assignment satisfying every hard constraint.

    Raises :class:`InfeasibleError` when no completion exists within
    ``node_budget`` search nodes.
    """

    locked_ids = set(settings.locked_player_ids)
    locked = [player for player in pool if player.player_id in locked_ids]
    missing = sorted(locked_ids - {player.player_id for player in locked})
    if missing:
        raise InfeasibleError(f"locked players not in the eligible pool: {', '.join(missing)}")

    seeded = place_locked(locked, pool, settings)
    search = LineupSearch(
        pool,
        settings,
        blocked=blocked,
        forbidden=forbidden,
        node_budget=node_budget,
    )
    assignment = search.run(seeded)
    logger.debug(
        "Constructed lineup in %s nodes (utility %.2f)",
        search.nodes,
        sum(player.utility for player in assignment.values()),
    )
    return assignment
