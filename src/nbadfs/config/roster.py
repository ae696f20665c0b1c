"""Roster configuration for the supported classic NBA contest."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Set, Tuple


class SlotKind(str, Enum):
    PG = "PG"
    SG = "SG"
    SF = "SF"
    PF = "PF"
    C = "C"
    G = "G"
    F = "F"
    UTIL = "UTIL"


@dataclass(frozen=True)
class RosterRules:
    site: str
    sport: str
    salary_cap: int
    roster_order: Tuple[SlotKind, ...]
    slot_positions: Mapping[SlotKind, Set[str]]

    @property
    def roster_size(self) -> int:
        return len(self.roster_order)

    @property
    def known_positions(self) -> Set[str]:
        return set().union(*self.slot_positions.values())


SALARY_CAP = 50_000

_ROSTER_RULES: Dict[Tuple[str, str], RosterRules] = {
    ("DK", "NBA"): RosterRules(
        site="DK",
        sport="NBA",
        salary_cap=SALARY_CAP,
        roster_order=(
            SlotKind.PG,
            SlotKind.SG,
            SlotKind.SF,
            SlotKind.PF,
            SlotKind.C,
            SlotKind.G,
            SlotKind.F,
            SlotKind.UTIL,
        ),
        slot_positions={
            SlotKind.PG: {"PG"},
            SlotKind.SG: {"SG"},
            SlotKind.SF: {"SF"},
            SlotKind.PF: {"PF"},
            SlotKind.C: {"C"},
            SlotKind.G: {"PG", "SG"},
            SlotKind.F: {"SF", "PF"},
            SlotKind.UTIL: {"PG", "SG", "SF", "PF", "C"},
        },
    ),
}


def get_rules(site: str = "DK", sport: str = "NBA") -> RosterRules:
    """Fetch rules for a site/sport pair, raising KeyError if missing."""

    key = (site.upper(), sport.upper())
    if key not in _ROSTER_RULES:
        raise KeyError(f"No roster rules configured for site={site!r}, sport={sport!r}")
    return _ROSTER_RULES[key]


CLASSIC_RULES = get_rules("DK", "NBA")
