"""Input adapters that normalize raw player-pool files."""

from .players import (
    DEFAULT_PLAYER_MAPPING,
    DK_SALARIES_MAPPING,
    LoadReport,
    MergeReport,
    PlayerRow,
    canonical_team,
    load_player_csv,
    load_records_from_csv,
    merge_salaries_and_projections,
    opponent_from_game,
    rows_to_records,
)

__all__ = [
    "DEFAULT_PLAYER_MAPPING",
    "DK_SALARIES_MAPPING",
    "LoadReport",
    "MergeReport",
    "PlayerRow",
    "canonical_team",
    "load_player_csv",
    "load_records_from_csv",
    "merge_salaries_and_projections",
    "opponent_from_game",
    "rows_to_records",
]
