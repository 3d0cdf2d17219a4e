"""
Economy configuration.

``EconomyConfig`` is constructed explicitly and handed to each economy
service at construction time.  ``from_settings()`` reads the
``NITRO_ECONOMY`` settings dict and falls back to ``core.constants``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from core import constants


@dataclass(frozen=True)
class EconomyConfig:
    max_supply: int = constants.MAX_SUPPLY
    burn_rate_percent: int = constants.BURN_RATE_PERCENT
    reward_pool_rate_percent: int = constants.REWARD_POOL_RATE_PERCENT
    base_daily_limit: int = constants.DEFAULT_DAILY_EMISSION_LIMIT
    decay_rate_percent: float = constants.DEFAULT_DECAY_RATE_PERCENT
    min_daily_limit: int = constants.MIN_DAILY_EMISSION
    emission_start_date: date = field(
        default_factory=lambda: date.fromisoformat(constants.DEFAULT_EMISSION_START_DATE)
    )
    active_player_bonus: int = constants.DEFAULT_ACTIVE_PLAYER_BONUS
    max_player_bonus_cap: int = constants.DEFAULT_MAX_PLAYER_BONUS_CAP

    def __post_init__(self) -> None:
        if isinstance(self.emission_start_date, str):
            object.__setattr__(
                self, "emission_start_date", date.fromisoformat(self.emission_start_date)
            )
        if self.max_supply <= 0:
            raise ImproperlyConfigured("max_supply must be positive.")
        if self.burn_rate_percent < 0 or self.reward_pool_rate_percent < 0:
            raise ImproperlyConfigured("Split percentages cannot be negative.")
        if self.burn_rate_percent + self.reward_pool_rate_percent > 100:
            raise ImproperlyConfigured(
                "burn_rate_percent + reward_pool_rate_percent must not exceed 100."
            )
        if not 0 <= self.decay_rate_percent < 100:
            raise ImproperlyConfigured("decay_rate_percent must be in [0, 100).")
        if not 0 <= self.min_daily_limit <= self.base_daily_limit:
            raise ImproperlyConfigured(
                "min_daily_limit must be between 0 and base_daily_limit."
            )

    @property
    def treasury_rate_percent(self) -> int:
        return 100 - self.burn_rate_percent - self.reward_pool_rate_percent

    @classmethod
    def from_settings(cls) -> "EconomyConfig":
        overrides: dict[str, Any] = dict(getattr(settings, "NITRO_ECONOMY", {}) or {})
        known = set(cls.__dataclass_fields__)
        unknown = set(overrides) - known
        if unknown:
            raise ImproperlyConfigured(
                f"Unknown NITRO_ECONOMY keys: {', '.join(sorted(unknown))}"
            )
        return cls(**overrides)

    def with_overrides(self, **changes: Any) -> "EconomyConfig":
        return replace(self, **changes)
