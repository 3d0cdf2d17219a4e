"""
Risk policy configuration.

``RiskConfig`` is built once and handed to the classifier and the risk
services.  ``from_settings()`` reads the ``NITRO_RISK`` settings dict and
falls back to ``core.constants``.  Construction fails with
``ImproperlyConfigured`` when a table is not monotonic: lower risk must
never receive a smaller multiplier, cap or a longer cooldown.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from core import constants

from .models import RISK_LEVEL_ORDER, RiskLevel

DIMENSIONS: tuple[str, ...] = ("interval", "variability", "winrate", "pattern")


@dataclass(frozen=True)
class RiskConfig:
    thresholds: Mapping[str, int] = field(
        default_factory=lambda: dict(constants.RISK_THRESHOLDS)
    )
    multipliers: Mapping[str, float] = field(
        default_factory=lambda: dict(constants.RISK_REWARD_MULTIPLIERS)
    )
    daily_caps: Mapping[str, int] = field(
        default_factory=lambda: dict(constants.RISK_DAILY_CAPS)
    )
    cooldowns: Mapping[str, int] = field(
        default_factory=lambda: dict(constants.RISK_COOLDOWN_SECONDS)
    )
    dimension_weights: Mapping[str, float] = field(
        default_factory=lambda: dict(constants.BEHAVIOR_DIMENSION_WEIGHTS)
    )
    window_size: int = constants.BEHAVIOR_WINDOW_SIZE
    min_samples: int = constants.BEHAVIOR_MIN_SAMPLES
    min_winrate_samples: int = constants.BEHAVIOR_MIN_WINRATE_SAMPLES
    interval_human_cv: float = constants.INTERVAL_HUMAN_CV
    duration_human_cv: float = constants.DURATION_HUMAN_CV
    human_max_winrate: float = constants.HUMAN_MAX_WINRATE
    pattern_human_max_share: float = constants.PATTERN_HUMAN_MAX_SHARE
    dimension_alert_score: int = constants.DIMENSION_ALERT_SCORE
    block_seconds: int = constants.BLOCK_SECONDS
    profile_cache_seconds: int = constants.PROFILE_CACHE_SECONDS

    def __post_init__(self) -> None:
        graded = RISK_LEVEL_ORDER[:-1]
        if set(self.thresholds) != set(graded):
            raise ImproperlyConfigured(
                f"Risk thresholds must define exactly {', '.join(graded)}."
            )
        for name in ("multipliers", "daily_caps", "cooldowns"):
            table = getattr(self, name)
            if set(table) != set(RISK_LEVEL_ORDER):
                raise ImproperlyConfigured(
                    f"Risk {name} must define exactly {', '.join(RISK_LEVEL_ORDER)}."
                )
        if set(self.dimension_weights) != set(DIMENSIONS):
            raise ImproperlyConfigured(
                f"Dimension weights must define exactly {', '.join(DIMENSIONS)}."
            )
        if sum(self.dimension_weights.values()) <= 0:
            raise ImproperlyConfigured("Dimension weights must sum to a positive value.")

        thresholds = [self.thresholds[level] for level in graded]
        if any(a <= b for a, b in zip(thresholds, thresholds[1:])):
            raise ImproperlyConfigured("Risk thresholds must strictly decrease from LOW to HIGH.")
        for name in ("multipliers", "daily_caps"):
            values = [getattr(self, name)[level] for level in RISK_LEVEL_ORDER]
            if any(a < b for a, b in zip(values, values[1:])):
                raise ImproperlyConfigured(
                    f"Risk {name} must not increase from LOW to CRITICAL."
                )
        cooldowns = [self.cooldowns[level] for level in RISK_LEVEL_ORDER]
        if any(a > b for a, b in zip(cooldowns, cooldowns[1:])):
            raise ImproperlyConfigured("Risk cooldowns must not decrease from LOW to CRITICAL.")
        if not 0 <= self.multipliers[RiskLevel.LOW] <= 1:
            raise ImproperlyConfigured("Reward multipliers must lie in [0, 1].")
        if self.window_size < self.min_winrate_samples or self.min_samples < 2:
            raise ImproperlyConfigured(
                "window_size must cover min_winrate_samples and min_samples must be at least 2."
            )

    def min_score(self, level: str) -> int:
        """Lowest behavior score classified at ``level`` (0 for CRITICAL)."""
        return self.thresholds.get(str(level), 0)

    @classmethod
    def from_settings(cls) -> "RiskConfig":
        overrides: dict[str, Any] = dict(getattr(settings, "NITRO_RISK", {}) or {})
        unknown = set(overrides) - set(cls.__dataclass_fields__)
        if unknown:
            raise ImproperlyConfigured(
                f"Unknown NITRO_RISK keys: {', '.join(sorted(unknown))}"
            )
        return cls(**overrides)

    def with_overrides(self, **changes: Any) -> "RiskConfig":
        return replace(self, **changes)


DEFAULT_RISK_CONFIG = RiskConfig()
