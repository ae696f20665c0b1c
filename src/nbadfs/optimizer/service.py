"""Multi-lineup orchestration on top of the single-lineup search."""

from __future__ import annotations

import logging
import multiprocessing as mp
import os
import time
from concurrent.futures import Executor, ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from nbadfs.config.roster import CLASSIC_RULES
from nbadfs.config.settings import OptimizationSettings
from nbadfs.models import BatchNotice, ExposureEntry, LineupResult, PlayerRecord
from nbadfs.optimizer.analytics import exposure_report, package_lineup
from nbadfs.optimizer.constructor import (
    DEFAULT_NODE_BUDGET,
    Assignment,
    construct_lineup,
    lineup_signature,
    place_locked,
)
from nbadfs.optimizer.errors import InfeasibleError, OptimizerError, PartialBatchError
from nbadfs.optimizer.exposure import ExposureTracker, min_appearances
from nbadfs.optimizer.refiner import DEFAULT_MAX_STALE, refine_lineup
from nbadfs.optimizer.scoring import ScoredPlayer, jitter_pool, score_pool
from nbadfs.optimizer.validation import assignment_is_valid
from nbadfs.pool import filtering


logger = logging.getLogger(__name__)

_NODE_BUDGET_ENV = "NBADFS_NODE_BUDGET"
_REFINE_STALE_ENV = "NBADFS_REFINE_STALE"
_RETRY_BUDGET_ENV = "NBADFS_RETRY_BUDGET"

_RETRY_BUDGET_DEFAULT = 6


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _node_budget() -> int:
    return _env_int(_NODE_BUDGET_ENV, DEFAULT_NODE_BUDGET, min_value=1)


def _refine_stale() -> int:
    return _env_int(_REFINE_STALE_ENV, DEFAULT_MAX_STALE, min_value=0)


def _retry_budget() -> int:
    return _env_int(_RETRY_BUDGET_ENV, _RETRY_BUDGET_DEFAULT, min_value=1)


@dataclass(frozen=True)
class ExposureGap:
    """A player whose minimum exposure could not be reached."""

    player_id: str
    name: str
    required: int
    achieved: int


@dataclass(frozen=True)
class OptimizationResult:
    lineups: List[LineupResult]
    exposure: List[ExposureEntry]
    notice: Optional[BatchNotice] = None
    filter_summary: Optional[filtering.FilterSummary] = None
    exposure_gaps: List[ExposureGap] = field(default_factory=list)
    elapsed: float = 0.0


@dataclass(frozen=True)
class _BuildJob:
    index: int
    attempt: int
    pool: Tuple[ScoredPlayer, ...]
    settings: OptimizationSettings
    blocked: FrozenSet[str]
    forbidden: FrozenSet[FrozenSet[str]]
    node_budget: int
    max_stale: int


@dataclass(frozen=True)
class _BuildOutcome:
    index: int
    attempt: int
    assignment: Optional[Assignment] = None
    error: Optional[str] = None
    details: Tuple[str, ...] = ()


def build_candidate(
    pool: Sequence[ScoredPlayer],
    settings: OptimizationSettings,
    *,
    index: int,
    attempt: int = 0,
    blocked: FrozenSet[str] = frozenset(),
    forbidden: FrozenSet[FrozenSet[str]] = frozenset(),
    node_budget: int = DEFAULT_NODE_BUDGET,
    max_stale: int = DEFAULT_MAX_STALE,
) -> Assignment:
    """Construct and refine lineup ``index`` for one jitter ``attempt``."""

    jittered = jitter_pool(pool, settings, index=index, attempt=attempt)
    assignment = construct_lineup(
        jittered,
        settings,
        blocked=blocked,
        forbidden=forbidden,
        node_budget=node_budget,
    )
    return refine_lineup(
        assignment,
        jittered,
        settings,
        blocked=blocked,
        forbidden=forbidden,
        max_stale=max_stale,
    )


def _run_build_job(job: _BuildJob) -> _BuildOutcome:
    try:
        assignment = build_candidate(
            job.pool,
            job.settings,
            index=job.index,
            attempt=job.attempt,
            blocked=job.blocked,
            forbidden=job.forbidden,
            node_budget=job.node_budget,
            max_stale=job.max_stale,
        )
    except InfeasibleError as exc:
        return _BuildOutcome(job.index, job.attempt, error=exc.message, details=exc.details)
    return _BuildOutcome(job.index, job.attempt, assignment=assignment)


class _BatchBuilder:
    """Accepts lineups strictly in index order against the live tracker."""

    def __init__(
        self,
        pool: Sequence[ScoredPlayer],
        settings: OptimizationSettings,
        tracker: ExposureTracker,
        *,
        executor: Optional[Executor],
    ):
        self.pool = tuple(pool)
        self.settings = settings
        self.tracker = tracker
        self.executor = executor
        self.node_budget = _node_budget()
        self.max_stale = _refine_stale()
        self.retry_budget = _retry_budget()
        self.accepted: List[Assignment] = []
        self.signatures: Set[FrozenSet[str]] = set()
        self.last_error: Optional[str] = None
        self.last_details: Tuple[str, ...] = ()

    def _job(self, index: int, attempt: int) -> _BuildJob:
        return _BuildJob(
            index=index,
            attempt=attempt,
            pool=self.pool,
            settings=self.settings,
            blocked=self.tracker.blocked_ids(),
            forbidden=frozenset(self.signatures),
            node_budget=self.node_budget,
            max_stale=self.max_stale,
        )

    def _acceptable(self, outcome: _BuildOutcome) -> bool:
        if outcome.assignment is None:
            return False
        signature = lineup_signature(outcome.assignment)
        if signature in self.signatures:
            return False
        return self.tracker.admits(signature)

    def _accept(self, assignment: Assignment) -> None:
        signature = lineup_signature(assignment)
        self.signatures.add(signature)
        self.tracker.record(signature)
        self.accepted.append(assignment)

    def _rebuild(self, index: int) -> bool:
        for attempt in range(self.retry_budget):
            outcome = _run_build_job(self._job(index, attempt))
            if self._acceptable(outcome):
                self._accept(outcome.assignment)  # type: ignore[arg-type]
                return True
            self.last_error = outcome.error or "candidate conflicted with accepted lineups"
            self.last_details = outcome.details
            logger.warning(
                "Lineup %s attempt %s failed: %s",
                index + 1,
                attempt + 1,
                self.last_error,
            )
        return False

    def _wave(self, indices: Sequence[int]) -> List[_BuildOutcome]:
        jobs = [self._job(index, 0) for index in indices]
        if self.executor is None or len(jobs) == 1:
            return [_run_build_job(job) for job in jobs]
        return list(self.executor.map(_run_build_job, jobs))

    def run(self, total: int, wave_size: int) -> bool:
        """Build up to ``total`` lineups; returns False when the batch stopped early."""

        next_index = 0
        while next_index < total:
            wave_start = time.perf_counter()
            indices = list(range(next_index, min(total, next_index + wave_size)))
            outcomes = self._wave(indices)
            for outcome in outcomes:
                if self._acceptable(outcome):
                    self._accept(outcome.assignment)  # type: ignore[arg-type]
                elif not self._rebuild(outcome.index):
                    logger.warning(
                        "Stopping batch after %s/%s lineups: %s",
                        len(self.accepted),
                        total,
                        self.last_error,
                    )
                    return False
            next_index = indices[-1] + 1
            logger.info(
                "Wave %s-%s completed; total %s/%s (wave %.2fs)",
                indices[0] + 1,
                indices[-1] + 1,
                len(self.accepted),
                total,
                time.perf_counter() - wave_start,
            )
        return True


def _substitution_options(
    player: ScoredPlayer,
    assignment: Assignment,
    settings: OptimizationSettings,
    floors: Dict[str, int],
    tracker: ExposureTracker,
) -> List[Tuple[float, int, Assignment, str]]:
    locked = set(settings.locked_player_ids)
    options: List[Tuple[float, int, Assignment, str]] = []
    for position, slot in enumerate(CLASSIC_RULES.roster_order):
        if slot not in player.slots:
            continue
        incumbent = assignment[slot]
        if incumbent.player_id in locked:
            continue
        if tracker.count(incumbent.player_id) - 1 < floors.get(incumbent.player_id, 0):
            continue
        trial = dict(assignment)
        trial[slot] = player
        if not assignment_is_valid([(s, p.record) for s, p in trial.items()], settings):
            continue
        cost = incumbent.base_utility - player.base_utility
        options.append((cost, position, trial, incumbent.player_id))
    return options


def enforce_min_exposure(
    assignments: List[Assignment],
    pool: Sequence[ScoredPlayer],
    settings: OptimizationSettings,
    tracker: ExposureTracker,
) -> List[ExposureGap]:
    """Raise under-exposed players to their floor by substitution.

    A floor applies to every placeable pool player, including players no
    lineup picked. Players whose tier cap sits below the floor cannot
    reach it and are reported as gaps without substitution. Each
    substitution goes to the least costly legal slot across the batch; it
    must keep every hard constraint, keep lineups unique and must not push
    the incoming player past its exposure cap or the outgoing player below
    its own floor.
    """

    total = len(assignments)
    required = min_appearances(settings.min_exposure / 100.0, total)
    if total <= 1 or required <= 0:
        return []

    by_id = {player.player_id: player for player in pool}
    counts = tracker.snapshot()
    signatures = [lineup_signature(assignment) for assignment in assignments]
    placeable = [player for player in pool if player.slots]
    capped = [player for player in placeable if tracker.limit_for(player.player_id) < required]
    capped_ids = {player.player_id for player in capped}
    floors = {player.player_id: required for player in placeable if player.player_id not in capped_ids}
    gaps: List[ExposureGap] = []

    for pid in sorted(floors, key=lambda pid: (counts.get(pid, 0), by_id[pid].index)):
        player = by_id[pid]
        while tracker.count(pid) < required:
            if not tracker.admits([pid]):
                break
            best: Optional[Tuple[float, int, int, Assignment, str]] = None
            for lineup_idx, assignment in enumerate(assignments):
                if pid in signatures[lineup_idx]:
                    continue
                for cost, position, trial, outgoing in _substitution_options(
                    player, assignment, settings, floors, tracker
                ):
                    if lineup_signature(trial) in signatures:
                        continue
                    key = (cost, lineup_idx, position)
                    if best is None or key < best[:3]:
                        best = (cost, lineup_idx, position, trial, outgoing)
            if best is None:
                break
            _, lineup_idx, _, trial, outgoing = best
            assignments[lineup_idx] = trial
            signatures[lineup_idx] = lineup_signature(trial)
            tracker.swap(outgoing, pid)
            logger.debug("Substituted %s for %s in lineup %s", pid, outgoing, lineup_idx + 1)

        achieved = tracker.count(pid)
        if achieved < required:
            gaps.append(ExposureGap(player_id=pid, name=player.record.name, required=required, achieved=achieved))

    for player in capped:
        gaps.append(
            ExposureGap(
                player_id=player.player_id,
                name=player.record.name,
                required=required,
                achieved=tracker.count(player.player_id),
            )
        )
    gaps.sort(key=lambda gap: by_id[gap.player_id].index)
    if gaps:
        logger.warning("%s player(s) below minimum exposure of %.1f%%", len(gaps), settings.min_exposure)
    return gaps


def _executor(settings: OptimizationSettings) -> Optional[Executor]:
    if settings.parallel_jobs <= 1 or settings.wave_size <= 1 or settings.num_lineups <= 1:
        return None
    workers = min(settings.parallel_jobs, settings.wave_size)
    return ProcessPoolExecutor(max_workers=workers, mp_context=mp.get_context("spawn"))


def _notice(exc: OptimizerError, requested: int, produced: int) -> BatchNotice:
    return BatchNotice(
        kind=exc.kind,  # type: ignore[arg-type]
        requested=requested,
        produced=produced,
        reason=exc.message,
        details=exc.details,
    )


def generate_lineups(
    pool: Sequence[ScoredPlayer],
    settings: OptimizationSettings,
) -> Tuple[List[LineupResult], List[ExposureGap]]:
    """Build ``settings.num_lineups`` unique lineups from a scored pool.

    Raises :class:`InfeasibleError` when no lineup can be built and
    :class:`PartialBatchError` (carrying the lineups built so far) when the
    batch stops early.
    """

    locked_ids = set(settings.locked_player_ids)
    missing = sorted(locked_ids - {player.player_id for player in pool})
    if missing:
        raise InfeasibleError(f"locked players not in the eligible pool: {', '.join(missing)}")
    place_locked([p for p in pool if p.locked], pool, settings)

    total = settings.num_lineups
    tracker = ExposureTracker(settings, pool)
    executor = _executor(settings)
    try:
        builder = _BatchBuilder(pool, settings, tracker, executor=executor)
        completed = builder.run(total, settings.wave_size)
    finally:
        if executor is not None:
            executor.shutdown()

    assignments = builder.accepted
    gaps = enforce_min_exposure(assignments, pool, settings, tracker) if assignments else []
    lineups = [package_lineup(assignment, idx) for idx, assignment in enumerate(assignments)]

    if not lineups:
        raise InfeasibleError(builder.last_error or "no valid lineup found", builder.last_details)
    if not completed:
        raise PartialBatchError(
            lineups,
            total,
            f"built {len(lineups)} of {total} lineups: {builder.last_error}",
            builder.last_details,
        )
    return lineups, gaps


def optimize(records: Sequence[PlayerRecord], settings: OptimizationSettings) -> OptimizationResult:
    """Filter, score and build a batch of lineups.

    Engine failures never raise: they come back as a
    :class:`~nbadfs.models.BatchNotice` on the result alongside whatever
    lineups were produced.
    """

    start = time.perf_counter()
    logger.info(
        "Starting optimization - mode=%s, lineups=%s, pool=%s, seed=%s, workers=%s",
        settings.mode.value,
        settings.num_lineups,
        len(records),
        settings.seed,
        settings.parallel_jobs,
    )

    summary: Optional[filtering.FilterSummary] = None
    lineups: List[LineupResult] = []
    gaps: List[ExposureGap] = []
    notice: Optional[BatchNotice] = None
    try:
        filtered = filtering.filter_pool(records, settings)
        summary = filtered.summary
        pool = score_pool(filtered.players, settings)
        lineups, gaps = generate_lineups(pool, settings)
    except PartialBatchError as exc:
        lineups = exc.lineups
        notice = _notice(exc, settings.num_lineups, len(lineups))
    except OptimizerError as exc:
        notice = _notice(exc, settings.num_lineups, 0)

    elapsed = time.perf_counter() - start
    if notice is not None:
        logger.warning(
            "Optimization finished with %s notice: %s (%s/%s lineups)",
            notice.kind,
            notice.reason,
            notice.produced,
            notice.requested,
        )
    logger.info("Completed %s lineups in %.2fs", len(lineups), elapsed)
    return OptimizationResult(
        lineups=lineups,
        exposure=exposure_report(lineups, settings),
        notice=notice,
        filter_summary=summary,
        exposure_gaps=gaps,
        elapsed=elapsed,
    )


__all__ = [
    "ExposureGap",
    "OptimizationResult",
    "build_candidate",
    "enforce_min_exposure",
    "generate_lineups",
    "optimize",
]
