"""
Behavior dimensions — pure statistics over a wallet's recent races.

Each dimension scores 0-100 where 100 looks human and 0 looks scripted:

* ``interval_score``    — coefficient of variation (CV) of the gaps
                          between consecutive races.  Humans start races
                          irregularly; schedulers don't.
* ``variability_score`` — CV of race durations.
* ``winrate_score``     — 100 up to a plausible human win rate, falling
                          linearly to 0 at a 100% win rate.
* ``pattern_score``     — share of races that paid the single most common
                          NP amount; repeated identical payouts score low.
                          Races still being settled have no amount yet and
                          are left out.

A dimension with too few samples to judge scores 100 (benefit of the
doubt).  Nothing here touches the database.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Sequence

import numpy as np

from core.domain.numbers import clamp, round_half_up

from .config import DEFAULT_RISK_CONFIG, RiskConfig


@dataclass(frozen=True)
class RaceSample:
    raced_at: datetime
    duration_ms: int
    won: bool
    np_earned: int | None


@dataclass(frozen=True)
class BehaviorDimensions:
    interval_score: int = 100
    variability_score: int = 100
    winrate_score: int = 100
    pattern_score: int = 100

    def as_dict(self) -> dict[str, int]:
        return asdict(self)

    def by_dimension(self) -> dict[str, int]:
        """Scores keyed by the names used in ``RiskConfig.dimension_weights``."""
        return {
            "interval": self.interval_score,
            "variability": self.variability_score,
            "winrate": self.winrate_score,
            "pattern": self.pattern_score,
        }


def _score_from_cv(values: np.ndarray, human_cv: float) -> int:
    mean = float(np.mean(values))
    if mean <= 0:
        return 0
    cv = float(np.std(values)) / mean
    return round_half_up(clamp(cv / human_cv * 100, 0, 100))


def _linear_falloff(value: float, human_max: float) -> int:
    """100 at or below ``human_max``, linearly down to 0 at 1.0."""
    if value <= human_max:
        return 100
    return round_half_up(clamp((1 - value) / (1 - human_max) * 100, 0, 100))


def interval_score(timestamps: Sequence[datetime], config: RiskConfig = DEFAULT_RISK_CONFIG) -> int:
    if len(timestamps) < config.min_samples:
        return 100
    seconds = np.array(sorted(ts.timestamp() for ts in timestamps), dtype=float)
    return _score_from_cv(np.diff(seconds), config.interval_human_cv)


def variability_score(durations_ms: Sequence[int], config: RiskConfig = DEFAULT_RISK_CONFIG) -> int:
    if len(durations_ms) < config.min_samples:
        return 100
    return _score_from_cv(np.asarray(durations_ms, dtype=float), config.duration_human_cv)


def winrate_score(results: Sequence[bool], config: RiskConfig = DEFAULT_RISK_CONFIG) -> int:
    if len(results) < config.min_winrate_samples:
        return 100
    rate = float(np.mean(np.asarray(results, dtype=float)))
    return _linear_falloff(rate, config.human_max_winrate)


def pattern_score(amounts: Sequence[int], config: RiskConfig = DEFAULT_RISK_CONFIG) -> int:
    if len(amounts) < config.min_samples:
        return 100
    _, modal_count = Counter(amounts).most_common(1)[0]
    return _linear_falloff(modal_count / len(amounts), config.pattern_human_max_share)


def compute_dimensions(
    samples: Sequence[RaceSample],
    config: RiskConfig = DEFAULT_RISK_CONFIG,
) -> BehaviorDimensions:
    """Score the most recent ``config.window_size`` samples."""
    window = sorted(samples, key=lambda s: s.raced_at)[-config.window_size:]
    return BehaviorDimensions(
        interval_score=interval_score([s.raced_at for s in window], config),
        variability_score=variability_score([s.duration_ms for s in window], config),
        winrate_score=winrate_score([s.won for s in window], config),
        pattern_score=pattern_score(
            [s.np_earned for s in window if s.np_earned is not None], config,
        ),
    )
