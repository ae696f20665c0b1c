import pytest

from nbadfs.config import GameStack, OptimizationSettings, TeamStack
from nbadfs.optimizer import InfeasibleError, PartialBatchError, generate_lineups, optimize, validate_lineup
from nbadfs.optimizer import service
from nbadfs.optimizer.scoring import score_pool

from tests.sample_pools import by_id, centers, slate_pool, ten_player_pool


def _ids(result):
    return [lineup.player_ids for lineup in result.lineups]


def test_optimize_returns_valid_unique_lineups():
    settings = OptimizationSettings(num_lineups=5, min_salary=45_000)
    result = optimize(slate_pool(), settings)

    assert result.notice is None
    assert len(result.lineups) == 5
    assert len({frozenset(ids) for ids in _ids(result)}) == 5
    assert [lineup.lineup_id for lineup in result.lineups] == ["L001", "L002", "L003", "L004", "L005"]

    records = by_id(slate_pool())
    for lineup in result.lineups:
        entries = [(entry.slot, records[entry.player.player_id]) for entry in lineup.slots]
        report = validate_lineup(entries, settings=settings)
        assert report.valid, report.violations
        assert lineup.total_salary + lineup.remaining_salary == 50_000
        assert lineup.team_count >= 6
        assert lineup.game_count >= 3
    assert result.filter_summary.kept_players == 40


def test_lineup_aggregates():
    result = optimize(slate_pool(), OptimizationSettings(min_salary=45_000))
    lineup = result.lineups[0]
    players = lineup.players
    assert lineup.projected_points == pytest.approx(sum(p.projected_points for p in players), abs=0.01)
    assert lineup.total_ceiling == pytest.approx(sum(p.ceiling for p in players), abs=0.01)
    assert lineup.avg_ownership == pytest.approx(sum(p.ownership for p in players) / 8, abs=0.01)
    assert lineup.salary_efficiency == pytest.approx(
        lineup.projected_points / (lineup.total_salary / 1000), abs=0.001
    )


def test_same_seed_same_batch():
    settings = OptimizationSettings(mode="gpp", num_lineups=6, min_salary=45_000, randomness=10, seed=3)
    first = optimize(slate_pool(), settings)
    second = optimize(slate_pool(), settings)
    assert _ids(first) == _ids(second)


def test_worker_count_does_not_change_results():
    base = dict(mode="gpp", num_lineups=6, min_salary=45_000, randomness=10, seed=5, wave_size=3)
    serial = optimize(slate_pool(), OptimizationSettings(**base))
    parallel = optimize(slate_pool(), OptimizationSettings(parallel_jobs=2, **base))
    assert serial.notice is None
    assert _ids(serial) == _ids(parallel)


def test_empty_pool_becomes_notice():
    result = optimize(slate_pool(), OptimizationSettings(min_projection=1000.0))
    assert result.lineups == []
    assert result.notice.kind == "empty_pool"
    assert result.notice.produced == 0
    assert result.notice.details == ("min_projection: 40 dropped",)


def test_contested_locks_become_infeasible_notice():
    locks = [record.player_id for record in centers(slate_pool())[:3]]
    result = optimize(slate_pool(), OptimizationSettings(locked_player_ids=locks))
    assert result.lineups == []
    assert result.notice.kind == "infeasible"
    assert "contested slots" in result.notice.reason


def test_unknown_lock_becomes_infeasible_notice():
    result = optimize(slate_pool(), OptimizationSettings(locked_player_ids=["ghost"]))
    assert result.notice.kind == "infeasible"
    assert "ghost" in result.notice.reason


def test_small_pool_returns_partial_batch():
    settings = OptimizationSettings(num_lineups=40, min_salary=45_000)
    result = optimize(ten_player_pool(), settings)
    assert result.notice.kind == "partial_batch"
    assert 0 < len(result.lineups) < 40
    assert result.notice.produced == len(result.lineups)
    assert result.notice.requested == 40
    assert len({frozenset(ids) for ids in _ids(result)}) == len(result.lineups)


def test_generate_lineups_raises_for_callers_that_want_exceptions():
    settings = OptimizationSettings(num_lineups=40, min_salary=45_000)
    with pytest.raises(PartialBatchError) as excinfo:
        generate_lineups(score_pool(ten_player_pool(), settings), settings)
    assert excinfo.value.lineups
    assert excinfo.value.requested == 40

    strict = OptimizationSettings(min_salary=45_000, min_teams=7)
    with pytest.raises(InfeasibleError):
        generate_lineups(score_pool(ten_player_pool(), strict), strict)


def test_retry_budget_env(monkeypatch):
    monkeypatch.setenv("NBADFS_RETRY_BUDGET", "not-a-number")
    assert service._retry_budget() == 6
    monkeypatch.setenv("NBADFS_RETRY_BUDGET", "0")
    assert service._retry_budget() == 1
    monkeypatch.setenv("NBADFS_NODE_BUDGET", "250")
    assert service._node_budget() == 250
    monkeypatch.delenv("NBADFS_REFINE_STALE", raising=False)
    assert service._refine_stale() == 200


def test_team_and_game_stacks_hold_in_every_lineup():
    settings = OptimizationSettings(
        num_lineups=3,
        min_salary=40_000,
        team_stacks=[TeamStack(team="BOS", min_players=2)],
        game_stacks=[GameStack(game="LAL@DEN", min_players=3)],
    )
    result = optimize(slate_pool(), settings)
    assert result.notice is None
    assert len(result.lineups) == 3
    for lineup in result.lineups:
        teams = [player.team for player in lineup.players]
        assert teams.count("BOS") >= 2
        assert sum(1 for team in teams if team in {"LAL", "DEN"}) >= 3
