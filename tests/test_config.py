import pytest
from pydantic import ValidationError

from nbadfs.config import (
    GameStack,
    GppStrategy,
    Mode,
    OptimizationSettings,
    SlotKind,
    TeamStack,
    get_rules,
)


def test_get_rules_handles_site_and_sport_uppercase():
    rules = get_rules("dk", "nba")
    assert rules.site == "DK"
    assert rules.roster_size == 8
    assert rules.slot_positions[SlotKind.G] == {"PG", "SG"}


def test_get_rules_missing_raises():
    with pytest.raises(KeyError):
        get_rules("FD", "CURLING")


def test_min_salary_defaults_follow_mode():
    assert OptimizationSettings().min_salary == 49_000
    assert OptimizationSettings(mode="gpp").min_salary == 47_000
    assert OptimizationSettings(mode="gpp", min_salary=45_000).min_salary == 45_000


def test_preset_applies_mode_thresholds_and_overrides():
    cash = OptimizationSettings.preset("cash")
    assert cash.min_floor == 30.0
    assert cash.avoid_blowouts is True

    gpp = OptimizationSettings.preset(Mode.GPP, max_chalk_players=3)
    assert gpp.gpp_strategy is GppStrategy.BALANCED
    assert gpp.max_chalk_players == 3
    assert gpp.min_ceiling == 50.0


def test_locked_and_excluded_overlap_is_rejected():
    with pytest.raises(ValidationError, match="locked and excluded"):
        OptimizationSettings(locked_player_ids=["p1"], excluded_player_ids=["p1"])


@pytest.mark.parametrize(
    "values",
    [
        {"num_lineups": 0},
        {"min_salary": 50_001},
        {"salary_cap": 60_000},
        {"locked_player_ids": [f"p{i}" for i in range(9)]},
        {"randomness": 31},
        {"max_exposure_chalk": 120},
        {"mid_ownership": 30, "chalk_ownership": 20},
        {"team_stacks": [{"team": "BOS", "min_players": 4}]},
    ],
)
def test_invalid_settings_raise(values):
    with pytest.raises(ValidationError):
        OptimizationSettings(**values)


def test_ids_are_deduplicated():
    settings = OptimizationSettings(locked_player_ids=["p1", " p1", "p2"])
    assert settings.locked_player_ids == ["p1", "p2"]


def test_tiers_and_exposure_caps():
    settings = OptimizationSettings()
    assert settings.tier_for(30.0) == "chalk"
    assert settings.tier_for(25.0) == "chalk"
    assert settings.tier_for(12.0) == "mid"
    assert settings.tier_for(None) == "leverage"
    assert settings.exposure_cap("chalk") == pytest.approx(0.30)
    assert settings.exposure_cap("leverage") == pytest.approx(0.70)


def test_stack_models_normalize_keys():
    assert TeamStack(team="bos").team == "BOS"
    assert GameStack(game="NYK vs bos", min_players=3).game == "BOS@NYK"
    assert GameStack(game="LAL@DEN").game == "DEN@LAL"
    with pytest.raises(ValidationError):
        GameStack(game="LAL")
