"""
Behavior risk classifier — pure, stateless policy functions.

Every function takes the policy tables from a ``RiskConfig`` (default:
the built-in constants) and never touches the database, so the same
code drives live assessments, the security report and the bot-attack
simulator.

Penalty tier transitions
------------------------
::

    risk level   →  target tier
    LOW          →  none
    MEDIUM       →  warning
    HIGH         →  suspect
    CRITICAL     →  flagged   (→ blocked if already flagged/blocked)

``blocked`` is only reachable from ``flagged`` or ``blocked``; every other
tier may move to any of none / warning / suspect / flagged.
"""

from __future__ import annotations

from core.domain.exceptions import InvalidTransition
from core.domain.numbers import round_half_up

from .behavior import BehaviorDimensions
from .config import DEFAULT_RISK_CONFIG, RiskConfig
from .models import RISK_LEVEL_ORDER, PenaltyTier, RiskLevel

TARGET_TIER: dict[str, PenaltyTier] = {
    RiskLevel.LOW: PenaltyTier.NONE,
    RiskLevel.MEDIUM: PenaltyTier.WARNING,
    RiskLevel.HIGH: PenaltyTier.SUSPECT,
    RiskLevel.CRITICAL: PenaltyTier.FLAGGED,
}

_OPEN_TIERS = frozenset({
    PenaltyTier.NONE,
    PenaltyTier.WARNING,
    PenaltyTier.SUSPECT,
    PenaltyTier.FLAGGED,
})

ALLOWED_TIER_TRANSITIONS: dict[str, frozenset[str]] = {
    PenaltyTier.NONE: _OPEN_TIERS,
    PenaltyTier.WARNING: _OPEN_TIERS,
    PenaltyTier.SUSPECT: _OPEN_TIERS,
    PenaltyTier.FLAGGED: _OPEN_TIERS | {PenaltyTier.BLOCKED},
    PenaltyTier.BLOCKED: _OPEN_TIERS | {PenaltyTier.BLOCKED},
}


def classify_risk(score: float, config: RiskConfig = DEFAULT_RISK_CONFIG) -> RiskLevel:
    """Map a behavior score to a risk level using the ordered thresholds."""
    for level in RISK_LEVEL_ORDER[:-1]:
        if score >= config.thresholds[level]:
            return RiskLevel(level)
    return RiskLevel.CRITICAL


def reward_multiplier(level: str, config: RiskConfig = DEFAULT_RISK_CONFIG) -> float:
    return config.multipliers[str(level)]


def daily_cap(level: str, config: RiskConfig = DEFAULT_RISK_CONFIG) -> int:
    return config.daily_caps[str(level)]


def cooldown_seconds(level: str, config: RiskConfig = DEFAULT_RISK_CONFIG) -> int:
    return config.cooldowns[str(level)]


def composite_score(
    dimensions: BehaviorDimensions,
    config: RiskConfig = DEFAULT_RISK_CONFIG,
) -> int:
    """Weighted mean of the four dimensions, rounded to an integer."""
    scores = dimensions.by_dimension()
    weights = config.dimension_weights
    total = sum(weights.values())
    return round_half_up(sum(scores[name] * weights[name] for name in scores) / total)


def validate_tier_transition(current: str, target: str) -> None:
    allowed = ALLOWED_TIER_TRANSITIONS[str(current)]
    if str(target) not in allowed:
        raise InvalidTransition(
            current=str(current),
            target=str(target),
            reason="a wallet must be flagged before it can be blocked",
        )


def next_penalty_tier(current: str, level: str) -> PenaltyTier:
    """
    Tier after an assessment at ``level`` for a profile whose block, if
    any, is not active.  Callers freeze the tier while a block is active.
    """
    if level == RiskLevel.CRITICAL and current in (PenaltyTier.FLAGGED, PenaltyTier.BLOCKED):
        target = PenaltyTier.BLOCKED
    else:
        target = TARGET_TIER[str(level)]
    validate_tier_transition(current, target)
    return target
