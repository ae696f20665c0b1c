from collections import Counter

import pytest

from nbadfs.config import OptimizationSettings
from nbadfs.optimizer import optimize
from nbadfs.optimizer.exposure import ExposureTracker, max_appearances, min_appearances
from nbadfs.optimizer.scoring import score_pool

from tests.sample_pools import slate_pool


@pytest.mark.parametrize(
    ("fraction", "total", "expected"),
    [
        (0.30, 20, 6),
        # Any positive cap allows one lineup, so 30% of 3 may reach 33%.
        (0.30, 3, 1),
        (0.50, 5, 2),
        (1.00, 7, 7),
        (0.0, 10, 0),
        (0.70, 10, 7),
    ],
)
def test_max_appearances(fraction, total, expected):
    assert max_appearances(fraction, total) == expected


@pytest.mark.parametrize(
    ("fraction", "total", "expected"),
    [
        (0.10, 20, 2),
        (0.25, 10, 3),
        (0.0, 10, 0),
        (1.0, 4, 4),
    ],
)
def test_min_appearances(fraction, total, expected):
    assert min_appearances(fraction, total) == expected


def test_tracker_blocks_players_at_their_cap():
    settings = OptimizationSettings(num_lineups=10, max_exposure_leverage=20.0)
    pool = score_pool(slate_pool(), settings)
    leverage_player = next(p for p in pool if p.tier == "leverage")
    tracker = ExposureTracker(settings, pool)

    tracker.record([leverage_player.player_id])
    assert tracker.admits([leverage_player.player_id])
    tracker.record([leverage_player.player_id])
    assert not tracker.admits([leverage_player.player_id])
    assert leverage_player.player_id in tracker.blocked_ids()

    tracker.swap(leverage_player.player_id, "p40")
    assert tracker.count(leverage_player.player_id) == 1
    assert tracker.snapshot()["p40"] == 1


def test_locked_players_and_single_lineups_are_uncapped():
    single = OptimizationSettings(num_lineups=1, max_exposure_chalk=0.0)
    pool = score_pool(slate_pool(), single)
    assert ExposureTracker(single, pool).blocked_ids() == frozenset()

    locked = OptimizationSettings(num_lineups=5, locked_player_ids=["p01"], max_exposure_leverage=0.0)
    tracker = ExposureTracker(locked, score_pool(slate_pool(), locked))
    tracker.record(["p01"] * 5)
    assert tracker.admits(["p01"])
    assert tracker.limit_for("p01") == 5


def test_chalk_exposure_capped_across_batch():
    settings = OptimizationSettings(
        mode="gpp",
        num_lineups=20,
        min_salary=40_000,
        max_exposure_chalk=30.0,
        randomness=5,
        seed=11,
    )
    result = optimize(slate_pool(), settings)
    assert result.notice is None
    assert len(result.lineups) == 20

    counts = Counter(pid for lineup in result.lineups for pid in lineup.player_ids)
    chalk = {record.player_id for record in slate_pool() if record.ownership >= 25.0}
    for pid in chalk:
        assert counts[pid] <= 6

    entries = {entry.player_id: entry for entry in result.exposure}
    for pid, count in counts.items():
        assert entries[pid].count == count
        assert entries[pid].exposure == pytest.approx(count * 5.0)


def test_min_exposure_floor_met_or_reported():
    settings = OptimizationSettings(num_lineups=5, min_salary=40_000, min_exposure=40.0)
    result = optimize(slate_pool(), settings)
    gaps = {gap.player_id for gap in result.exposure_gaps}
    for entry in result.exposure:
        assert entry.count >= 2 or entry.player_id in gaps
    for gap in result.exposure_gaps:
        assert gap.required == 2
        assert gap.achieved < gap.required


def test_min_exposure_covers_players_no_lineup_picked():
    settings = OptimizationSettings(num_lineups=4, min_salary=40_000, min_exposure=50.0)
    result = optimize(slate_pool(), settings)
    assert len(result.lineups) == 4

    counts = Counter(pid for lineup in result.lineups for pid in lineup.player_ids)
    gaps = {gap.player_id: gap for gap in result.exposure_gaps}
    for record in slate_pool():
        if counts[record.player_id] < 2:
            assert record.player_id in gaps
            assert gaps[record.player_id].achieved == counts[record.player_id]


def test_min_exposure_above_tier_cap_is_reported_as_gap():
    settings = OptimizationSettings(
        num_lineups=4,
        min_salary=40_000,
        min_exposure=50.0,
        max_exposure_chalk=25.0,
    )
    result = optimize(slate_pool(), settings)
    counts = Counter(pid for lineup in result.lineups for pid in lineup.player_ids)
    gaps = {gap.player_id: gap for gap in result.exposure_gaps}
    for record in slate_pool():
        if record.ownership >= 25.0:
            assert counts[record.player_id] <= 1
            assert gaps[record.player_id].required == 2
            assert gaps[record.player_id].achieved == counts[record.player_id]


def test_chalk_cap_per_lineup_is_hard():
    settings = OptimizationSettings(
        mode="gpp",
        num_lineups=6,
        min_salary=40_000,
        max_chalk_players=1,
        randomness=5,
        seed=2,
    )
    result = optimize(slate_pool(), settings)
    assert result.notice is None
    assert len(result.lineups) == 6
    for lineup in result.lineups:
        assert sum(1 for player in lineup.players if player.ownership >= 25.0) <= 1
