"""Mode-dependent player utility used by lineup construction."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, replace
from typing import FrozenSet, Iterable, List, Sequence

from nbadfs.config.roster import SlotKind
from nbadfs.config.settings import GppStrategy, Mode, OptimizationSettings
from nbadfs.models import PlayerRecord
from nbadfs.optimizer.eligibility import eligible_slots


CASH_PROJECTION_WEIGHT = 0.6
CASH_FLOOR_WEIGHT = 0.4
CASH_VOLATILITY_PENALTY = 0.25
CASH_BUST_PENALTY = 0.15
BLOWOUT_PENALTY = 0.10

GPP_WEIGHTS = {
    # (ceiling, projection, log leverage)
    GppStrategy.MAX_LEVERAGE: (0.25, 0.15, 6.0),
    GppStrategy.BALANCED: (0.45, 0.35, 3.0),
    GppStrategy.CONTRARIAN: (0.45, 0.35, 3.0),
}
CONTRARIAN_OWNERSHIP_PENALTY = 0.4

RETRY_JITTER_STEP = 0.02
MAX_JITTER = 0.30


@dataclass(frozen=True)
class ScoredPlayer:
    """A pool player with its slots and utility for one construction attempt."""

    index: int
    record: PlayerRecord
    slots: FrozenSet[SlotKind]
    utility: float
    base_utility: float
    tier: str
    is_chalk: bool
    locked: bool = False

    @property
    def player_id(self) -> str:
        return self.record.player_id

    @property
    def salary(self) -> int:
        return self.record.salary

    @property
    def team(self) -> str:
        return self.record.team

    @property
    def game(self) -> str:
        return self.record.game_key

    def rank_key(self) -> tuple[float, float, int, int]:
        """Sort key: utility desc, projection desc, salary asc, input order."""

        return (-self.utility, -self.record.projected_points, self.record.salary, self.index)


def _cash_utility(record: PlayerRecord, settings: OptimizationSettings) -> float:
    proj = record.projected_points
    floor = record.floor if record.floor is not None else proj * 0.8
    volatility = record.volatility if record.volatility is not None else 0.2
    bust = record.bust_probability if record.bust_probability is not None else 0.0

    utility = CASH_PROJECTION_WEIGHT * proj + CASH_FLOOR_WEIGHT * floor
    utility -= CASH_VOLATILITY_PENALTY * volatility * proj
    utility -= CASH_BUST_PENALTY * (bust / 100.0) * proj
    if (
        settings.avoid_blowouts
        and record.vegas_spread is not None
        and abs(record.vegas_spread) > settings.blowout_spread
    ):
        utility *= 1.0 - BLOWOUT_PENALTY
    return utility


def _gpp_utility(record: PlayerRecord, settings: OptimizationSettings) -> float:
    proj = record.projected_points
    ceiling = record.ceiling if record.ceiling is not None else proj * 1.2
    ceiling_w, proj_w, leverage_w = GPP_WEIGHTS[settings.gpp_strategy]

    utility = ceiling_w * ceiling + proj_w * proj + leverage_w * math.log1p(record.leverage_score)
    if settings.gpp_strategy is GppStrategy.CONTRARIAN:
        utility -= CONTRARIAN_OWNERSHIP_PENALTY * (record.ownership or 0.0)
    return utility


def score_player(record: PlayerRecord, settings: OptimizationSettings) -> float:
    """Scalar utility for ``record`` under the settings' mode."""

    if settings.mode is Mode.CASH:
        return _cash_utility(record, settings)
    return _gpp_utility(record, settings)


def score_pool(records: Sequence[PlayerRecord], settings: OptimizationSettings) -> List[ScoredPlayer]:
    locked = set(settings.locked_player_ids)
    scored: List[ScoredPlayer] = []
    for idx, record in enumerate(records):
        utility = score_player(record, settings)
        ownership = record.ownership or 0.0
        scored.append(
            ScoredPlayer(
                index=idx,
                record=record,
                slots=eligible_slots(record.positions),
                utility=utility,
                base_utility=utility,
                tier=settings.tier_for(record.ownership),
                is_chalk=settings.is_gpp and ownership >= settings.chalk_ownership,
                locked=record.player_id in locked,
            )
        )
    return scored


def jitter_magnitude(settings: OptimizationSettings, attempt: int) -> float:
    base = settings.randomness / 100.0
    return min(MAX_JITTER, base + RETRY_JITTER_STEP * attempt) if attempt else base


def attempt_rng(seed: int, index: int, attempt: int) -> random.Random:
    """Random stream keyed only by (seed, lineup index, attempt)."""

    return random.Random(f"{seed}:{index}:{attempt}")


def jitter_pool(
    pool: Iterable[ScoredPlayer],
    settings: OptimizationSettings,
    *,
    index: int,
    attempt: int = 0,
) -> List[ScoredPlayer]:
    """Return ``pool`` with each utility nudged by a bounded multiplicative jitter."""

    players = list(pool)
    magnitude = jitter_magnitude(settings, attempt)
    if magnitude <= 0.0:
        return players

    rng = attempt_rng(settings.seed, index, attempt)
    jittered: List[ScoredPlayer] = []
    for player in players:
        offset = rng.uniform(-magnitude, magnitude)
        jittered.append(replace(player, utility=player.base_utility * (1.0 + offset)))
    return jittered
