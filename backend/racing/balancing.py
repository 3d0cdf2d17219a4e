"""
Reward balancing calculator: pure functions, no database.

Turns a car's four attributes into the numbers a race needs:

* ``calculate_power_score``     weighted composite of the attributes.
* ``get_dynamic_difficulty``    opponent strength for a PowerScore.
* ``generate_opponent_stats``   opponent drawn around that difficulty.
* ``calculate_reward``          logarithmic reward curve plus handling bonus.
* ``get_anti_farm_adjustment``  reward cut and difficulty boost for
                                wallets that win too often.
* vehicle mechanics             speed / acceleration multipliers and the
                                handling and durability mitigation curves.
* ``roll_collision``            collision outcome for one race.

Every attribute is clamped to ``[0, stat_cap]`` before use, so stacking
stats beyond the cap buys nothing.  Mitigation curves are bounded: no stat
can reach a zero-risk state (damage multiplier ≥ 0.6, collision
multiplier ≥ 0.7).

Randomness always comes from the caller's ``random.Random``.
"""

from __future__ import annotations

import math
import random
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from core import constants
from core.domain.exceptions import DomainError
from core.domain.numbers import clamp, round_half_up
from core.domain.validation import ensure_amount

ATTRIBUTES: tuple[str, ...] = ("speed", "acceleration", "handling", "durability")

OPPONENT_HEALTH = 100


# ────────────────────────────────────────────────────────────────────
# Configuration
# ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CollisionConfig:
    chance_percent: float = constants.COLLISION_CHANCE_PERCENT
    min_damage: int = constants.COLLISION_MIN_DAMAGE
    max_damage: int = constants.COLLISION_MAX_DAMAGE
    durability_loss: int = constants.COLLISION_DURABILITY_LOSS

    def __post_init__(self) -> None:
        if not 0 <= self.chance_percent <= 100:
            raise ImproperlyConfigured("Collision chance must lie in [0, 100].")
        if not 0 <= self.min_damage <= self.max_damage:
            raise ImproperlyConfigured("Collision damage range must satisfy 0 ≤ min ≤ max.")
        if self.durability_loss < 0:
            raise ImproperlyConfigured("Collision durability loss must not be negative.")


@dataclass(frozen=True)
class BalancingConfig:
    """
    Tunables of the balancing calculator.

    ``from_settings()`` reads ``settings.NITRO_BALANCING``; collision keys
    are given flat with a ``collision_`` prefix
    (``{"collision_chance_percent": 10}``).
    """

    stat_cap: int = constants.STAT_CAP
    power_score_weights: Mapping[str, float] = field(
        default_factory=lambda: dict(constants.POWER_SCORE_WEIGHTS)
    )
    base_difficulty: float = constants.BASE_DIFFICULTY
    difficulty_scaling_factor: float = constants.DIFFICULTY_SCALING_FACTOR
    opponent_stat_spread: float = constants.OPPONENT_STAT_SPREAD
    opponent_stat_min: int = constants.OPPONENT_STAT_MIN
    opponent_stat_max: int = constants.OPPONENT_STAT_MAX
    max_handling_efficiency_bonus: float = constants.MAX_HANDLING_EFFICIENCY_BONUS
    anti_farm_min_races: int = constants.ANTI_FARM_MIN_RACES
    anti_farm_winrate_threshold: float = constants.ANTI_FARM_WINRATE_THRESHOLD
    anti_farm_max_penalty: float = constants.ANTI_FARM_MAX_PENALTY
    anti_farm_max_difficulty_boost: float = constants.ANTI_FARM_MAX_DIFFICULTY_BOOST
    anti_farm_window: int = constants.ANTI_FARM_WINDOW
    collision: CollisionConfig = field(default_factory=CollisionConfig)

    def __post_init__(self) -> None:
        if set(self.power_score_weights) != set(ATTRIBUTES):
            raise ImproperlyConfigured(
                f"PowerScore weights must define exactly {', '.join(ATTRIBUTES)}."
            )
        if self.stat_cap <= 0:
            raise ImproperlyConfigured("stat_cap must be positive.")
        if not self.opponent_stat_min <= self.opponent_stat_max:
            raise ImproperlyConfigured("opponent_stat_min must not exceed opponent_stat_max.")
        if not 0 <= self.anti_farm_winrate_threshold < 1:
            raise ImproperlyConfigured("anti_farm_winrate_threshold must lie in [0, 1).")
        if not 0 <= self.anti_farm_max_penalty <= 1:
            raise ImproperlyConfigured("anti_farm_max_penalty must lie in [0, 1].")
        if self.anti_farm_window < self.anti_farm_min_races:
            raise ImproperlyConfigured("anti_farm_window must cover anti_farm_min_races.")

    @classmethod
    def from_settings(cls) -> "BalancingConfig":
        overrides: dict[str, Any] = dict(getattr(settings, "NITRO_BALANCING", {}) or {})
        collision_keys = {f"collision_{name}" for name in CollisionConfig.__dataclass_fields__}
        collision = {
            key.removeprefix("collision_"): overrides.pop(key)
            for key in list(overrides)
            if key in collision_keys
        }
        unknown = set(overrides) - (set(cls.__dataclass_fields__) - {"collision"})
        if unknown:
            raise ImproperlyConfigured(
                f"Unknown NITRO_BALANCING keys: {', '.join(sorted(unknown))}"
            )
        return cls(collision=CollisionConfig(**collision), **overrides)


DEFAULT_BALANCING_CONFIG = BalancingConfig()


# ────────────────────────────────────────────────────────────────────
# Value types
# ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class VehicleAttributes:
    speed: float = 0
    acceleration: float = 0
    handling: float = 0
    durability: float = 0

    def capped(self, config: BalancingConfig = DEFAULT_BALANCING_CONFIG) -> "VehicleAttributes":
        return VehicleAttributes(**{
            name: _cap(value, config) for name, value in asdict(self).items()
        })


@dataclass(frozen=True)
class OpponentStats:
    speed: int
    acceleration: int
    handling: int
    health: int
    level: int


@dataclass(frozen=True)
class AntiFarmAdjustment:
    reward_multiplier: float = 1.0
    difficulty_boost: float = 0.0


@dataclass(frozen=True)
class CollisionResult:
    occurred: bool
    engine_damage: int = 0
    durability_damage: int = 0


@dataclass(frozen=True)
class RewardQuote:
    """Everything the balancing calculator says about one car and one base reward."""

    power_score: float
    difficulty: float
    speed_multiplier: float
    acceleration_multiplier: float
    handling_efficiency_bonus: float
    handling_variance: float
    durability_damage_reduction: float
    durability_collision_reduction: float
    curve_reward: int
    anti_farm: AntiFarmAdjustment
    offered_reward: int


def _cap(value: float, config: BalancingConfig = DEFAULT_BALANCING_CONFIG) -> float:
    return clamp(value, 0, config.stat_cap)


def _fraction(value: float, config: BalancingConfig = DEFAULT_BALANCING_CONFIG) -> float:
    return _cap(value, config) / config.stat_cap


# ────────────────────────────────────────────────────────────────────
# PowerScore and difficulty
# ────────────────────────────────────────────────────────────────────

def calculate_power_score(
    attributes: VehicleAttributes,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> float:
    """speed×0.35 + acceleration×0.30 + handling×0.20 + durability×0.15, each capped."""
    capped = asdict(attributes.capped(config))
    return sum(capped[name] * weight for name, weight in config.power_score_weights.items())


def get_dynamic_difficulty(
    player_power_score: float,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> float:
    return config.base_difficulty + player_power_score * config.difficulty_scaling_factor


def generate_opponent_stats(
    player_power_score: float,
    player_level: int = 1,
    *,
    rng: random.Random,
    difficulty_boost: float = 0.0,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> OpponentStats:
    """
    Draw an opponent around the dynamic difficulty (plus any anti-farm
    boost).  Each stat is ``difficulty ± spread``, rounded and clamped to
    ``[opponent_stat_min, opponent_stat_max]``; the level is the player's
    level -1, 0 or +1 (never below 1).
    """
    centre = get_dynamic_difficulty(player_power_score, config) + difficulty_boost
    spread = config.opponent_stat_spread

    def draw() -> int:
        value = centre + (rng.random() * spread * 2 - spread)
        return int(clamp(round_half_up(value), config.opponent_stat_min, config.opponent_stat_max))

    return OpponentStats(
        speed=draw(),
        acceleration=draw(),
        handling=draw(),
        health=OPPONENT_HEALTH,
        level=max(1, player_level + rng.randint(-1, 1)),
    )


# ────────────────────────────────────────────────────────────────────
# Attribute mechanics
# ────────────────────────────────────────────────────────────────────

def get_speed_multiplier(speed: float, config: BalancingConfig = DEFAULT_BALANCING_CONFIG) -> float:
    """0.7 at 0, 1.0 at 50, 1.3 at the cap."""
    return 0.7 + _fraction(speed, config) * 0.6


def get_acceleration_multiplier(
    acceleration: float,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> float:
    """0.75 at 0, 1.0 at 50, 1.25 at the cap."""
    return 0.75 + _fraction(acceleration, config) * 0.5


def get_handling_efficiency_bonus(
    handling: float,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> float:
    ceiling = config.max_handling_efficiency_bonus
    return min(_fraction(handling, config) * ceiling, ceiling)


def get_handling_variance(handling: float, config: BalancingConfig = DEFAULT_BALANCING_CONFIG) -> float:
    """Race-result variance: 0.4 at 0 handling down to 0.16 at the cap."""
    return 0.4 * (1 - _fraction(handling, config) * 0.6)


def get_durability_damage_reduction(
    durability: float,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> float:
    """Engine-damage multiplier: 1.0 at 0 durability down to 0.6 at the cap."""
    return 1 - _fraction(durability, config) * 0.4


def get_durability_collision_reduction(
    durability: float,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> float:
    """Collision-chance multiplier: 1.0 at 0 durability down to 0.7 at the cap."""
    return 1 - _fraction(durability, config) * 0.3


def roll_collision(
    collision: CollisionConfig,
    durability: float,
    rng: random.Random,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> CollisionResult:
    chance = collision.chance_percent * get_durability_collision_reduction(durability, config)
    if rng.random() * 100 >= chance:
        return CollisionResult(occurred=False)

    span = collision.max_damage - collision.min_damage
    raw_damage = collision.min_damage + round_half_up(rng.random() * span)
    return CollisionResult(
        occurred=True,
        engine_damage=round_half_up(raw_damage * get_durability_damage_reduction(durability, config)),
        durability_damage=collision.durability_loss,
    )


# ────────────────────────────────────────────────────────────────────
# Rewards
# ────────────────────────────────────────────────────────────────────

def calculate_reward(
    base_reward: int,
    power_score: float,
    handling: float,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> int:
    """
    ``round(base × ln(PS + 1) / ln(101) × (1 + handling bonus))``.

    The log curve is ≈1.0 at PowerScore 100 and 0 at PowerScore 0, so
    stat-stacking grows rewards strictly sub-linearly.
    """
    base_reward = ensure_amount(base_reward, allow_zero=True)
    power_score = clamp(power_score, 0, config.stat_cap)
    log_multiplier = math.log(power_score + 1) / math.log(config.stat_cap + 1)
    efficiency = 1 + get_handling_efficiency_bonus(handling, config)
    return round_half_up(base_reward * log_multiplier * efficiency)


def get_anti_farm_adjustment(
    recent_wins: int,
    recent_races: int,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> AntiFarmAdjustment:
    """
    No adjustment below ``anti_farm_min_races`` races or at a win rate at
    or under the threshold (70%).  Above it, the reward cut (up to 30%)
    and the opponent difficulty boost (up to +15) grow together, linearly
    in the excess win rate.
    """
    if recent_races < 0 or not 0 <= recent_wins <= recent_races:
        raise DomainError(
            f"Invalid race history: {recent_wins} wins out of {recent_races} races."
        )
    if recent_races < config.anti_farm_min_races:
        return AntiFarmAdjustment()

    winrate = recent_wins / recent_races
    threshold = config.anti_farm_winrate_threshold
    if winrate <= threshold:
        return AntiFarmAdjustment()

    excess = (winrate - threshold) / (1 - threshold)
    return AntiFarmAdjustment(
        reward_multiplier=max(1 - config.anti_farm_max_penalty, 1 - excess * config.anti_farm_max_penalty),
        difficulty_boost=excess * config.anti_farm_max_difficulty_boost,
    )


def apply_anti_farm(reward: int, adjustment: AntiFarmAdjustment) -> int:
    return round_half_up(reward * adjustment.reward_multiplier)


def quote_reward(
    attributes: VehicleAttributes,
    base_reward: int,
    recent_wins: int = 0,
    recent_races: int = 0,
    config: BalancingConfig = DEFAULT_BALANCING_CONFIG,
) -> RewardQuote:
    """Curve reward and anti-farm cut for one race, before risk assessment."""
    power_score = calculate_power_score(attributes, config)
    curve_reward = calculate_reward(base_reward, power_score, attributes.handling, config)
    anti_farm = get_anti_farm_adjustment(recent_wins, recent_races, config)
    return RewardQuote(
        power_score=round(power_score, 2),
        difficulty=round(get_dynamic_difficulty(power_score, config) + anti_farm.difficulty_boost, 2),
        speed_multiplier=round(get_speed_multiplier(attributes.speed, config), 4),
        acceleration_multiplier=round(get_acceleration_multiplier(attributes.acceleration, config), 4),
        handling_efficiency_bonus=round(get_handling_efficiency_bonus(attributes.handling, config), 4),
        handling_variance=round(get_handling_variance(attributes.handling, config), 4),
        durability_damage_reduction=round(get_durability_damage_reduction(attributes.durability, config), 4),
        durability_collision_reduction=round(
            get_durability_collision_reduction(attributes.durability, config), 4,
        ),
        curve_reward=curve_reward,
        anti_farm=anti_farm,
        offered_reward=apply_anti_farm(curve_reward, anti_farm),
    )
