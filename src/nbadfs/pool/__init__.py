"""Player pool utilities (filtering, export, etc.)."""

from .filtering import (
    FilterResult,
    FilterSummary,
    filter_pool,
    is_injured,
)
from .export import export_lineup_summary, export_lineups_to_csv

__all__ = [
    "FilterResult",
    "FilterSummary",
    "filter_pool",
    "is_injured",
    "export_lineup_summary",
    "export_lineups_to_csv",
]
