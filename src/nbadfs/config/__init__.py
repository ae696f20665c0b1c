"""Configuration helpers for roster rules and optimization settings."""

from .roster import SALARY_CAP, RosterRules, SlotKind, get_rules
from .settings import GameStack, GppStrategy, Mode, OptimizationSettings, TeamStack, game_key

__all__ = [
    "SALARY_CAP",
    "RosterRules",
    "SlotKind",
    "get_rules",
    "GameStack",
    "GppStrategy",
    "Mode",
    "OptimizationSettings",
    "TeamStack",
    "game_key",
]
