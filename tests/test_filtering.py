import pytest

from nbadfs.config import OptimizationSettings
from nbadfs.optimizer import EmptyPoolError
from nbadfs.pool import filter_pool, is_injured

from tests.sample_pools import slate_pool, ten_player_pool


def _with(record, **changes):
    return record.model_copy(update=changes)


def test_injured_players_dropped_unless_locked():
    pool = slate_pool()
    pool[0] = _with(pool[0], injury_status="Out")
    pool[1] = _with(pool[1], injury_status="GTD")
    pool[2] = _with(pool[2], injury_status="Probable")

    result = filter_pool(pool, OptimizationSettings())
    kept = {record.player_id for record in result.players}
    assert "p01" not in kept and "p02" not in kept
    assert "p03" in kept
    assert result.summary.dropped == {"injured": 2}

    locked = filter_pool(pool, OptimizationSettings(locked_player_ids=["p01"]))
    assert "p01" in {record.player_id for record in locked.players}

    kept_all = filter_pool(pool, OptimizationSettings(filter_injured=False))
    assert len(kept_all.players) == len(pool)


def test_is_injured_ignores_blank_status():
    record = slate_pool()[0]
    assert not is_injured(record)
    assert is_injured(_with(record, injury_status=" q "))


def test_excluded_players_removed():
    result = filter_pool(slate_pool(), OptimizationSettings(excluded_player_ids=["p05", "p06"]))
    assert result.summary.dropped == {"excluded": 2}
    assert result.summary.kept_players == 38
    assert result.summary.total_dropped == 2


def test_cash_thresholds_apply_only_in_cash_mode():
    settings = OptimizationSettings(mode="cash", max_volatility=0.2)
    result = filter_pool(slate_pool(), settings)
    assert all(record.volatility <= 0.2 for record in result.players)
    assert result.summary.dropped["max_volatility"] > 0

    gpp = filter_pool(slate_pool(), OptimizationSettings(mode="gpp", max_volatility=0.2))
    assert gpp.summary.kept_players == 40


def test_gpp_thresholds():
    settings = OptimizationSettings(mode="gpp", min_boom_probability=20.0)
    result = filter_pool(slate_pool(), settings)
    assert all(record.boom_probability >= 20.0 for record in result.players)
    assert "min_boom_probability" in result.summary.dropped


def test_missing_metric_fails_active_threshold():
    pool = slate_pool()
    pool[0] = _with(pool[0], projected_minutes=None)
    result = filter_pool(pool, OptimizationSettings(min_projected_minutes=1.0))
    assert "p01" not in {record.player_id for record in result.players}
    assert result.summary.dropped == {"min_projected_minutes": 1}


def test_locked_players_bypass_thresholds():
    settings = OptimizationSettings(min_projection=1000.0, locked_player_ids=["t01"])
    with pytest.raises(EmptyPoolError, match="only 1 players remain"):
        filter_pool(ten_player_pool(), settings)


def test_empty_slot_reported_by_name():
    pool = [record for record in slate_pool() if record.positions != ["C"]]
    with pytest.raises(EmptyPoolError, match="no eligible C after filters"):
        filter_pool(pool, OptimizationSettings())


def test_pool_that_cannot_fill_every_slot_at_once():
    pool = ten_player_pool()
    # Every slot has a candidate, but four center-only players share C and UTIL.
    pool = pool[:5] + [_with(record, positions=["C"]) for record in pool[5:8]]
    with pytest.raises(EmptyPoolError) as excinfo:
        filter_pool(pool, OptimizationSettings())
    assert "short at" in excinfo.value.message
    assert excinfo.value.kind == "empty_pool"
