"""
Anti-bot app Service Layer.

Architecture
------------
- ``RiskAssessmentService`` — per-wallet behavior analysis, reward
                              adjustment and the cheap pre-race gate.
- ``SecurityReportService`` — aggregate view for the admin dashboard.

Assessment flow (``assess_risk``)
---------------------------------
1. Stored block still active?  → CRITICAL, reward 0, nothing recomputed.
2. Recompute the four behavior dimensions from the last
   ``window_size`` race-log rows, classify, move the penalty tier.
3. Block just applied by step 2?  → same short-circuit as step 1.
4. ``adjusted = min(round(base × multiplier), daily_cap − earned_today)``.
5. Attach a reason and operator recommendations.

Cross-app reads of ``racing.RaceLog`` go through ``apps.get_model`` so
this app never imports racing at module level.

The pre-race gate (``can_player_race``) reads a Django-cache entry that
every profile write deletes, and compares ``blocked_until`` with the
clock on every read, so a cached entry can never hide an active block.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone as dt_timezone
from typing import Any, Callable

from django.apps import apps
from django.core.cache import cache
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from core.domain.exceptions import NotFound
from core.domain.numbers import round_half_up
from core.domain.transactions import atomic_transition, store_guard
from core.domain.validation import ensure_amount, ensure_wallet

from .behavior import RaceSample, compute_dimensions
from .classifier import (
    classify_risk,
    composite_score,
    cooldown_seconds,
    daily_cap,
    next_penalty_tier,
    reward_multiplier,
)
from .config import RiskConfig
from .models import BehaviorProfile, PenaltyTier, RiskLevel

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

GATE_CACHE_PREFIX = "antibot:gate:"
NEAR_CAP_RATIO = 0.8
SECURITY_REPORT_DAYS = 7
TOP_SUSPICIOUS_LIMIT = 10
RECENT_FLAGS_LIMIT = 20


def _race_log_model():
    return apps.get_model("racing", "RaceLog")


def _utc_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = datetime.combine(now.astimezone(dt_timezone.utc).date(), time.min, tzinfo=dt_timezone.utc)
    return start, start + timedelta(days=1)


# ═══════════════════════════════════════════════════════════════════
#  Result types
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DailyActivity:
    earnings: int = 0
    races: int = 0


@dataclass(frozen=True)
class RiskAssessment:
    risk_level: str
    reward_multiplier: float
    blocked: bool
    reason: str
    adjusted_reward: int
    original_reward: int
    penalty_tier: str
    recommendations: list[str] = field(default_factory=list)
    behavior_score: int | None = None
    daily_earnings: int = 0
    daily_cap: int = 0


@dataclass(frozen=True)
class RaceGate:
    allowed: bool
    reason: str
    penalty_tier: str
    wait_seconds: int | None = None


# ═══════════════════════════════════════════════════════════════════
#  Risk Assessment
# ═══════════════════════════════════════════════════════════════════


class RiskAssessmentService:
    """
    Decides how much of a reward a wallet may receive.

    Well-formed input never raises: a blocked or capped wallet gets a
    structured result with ``adjusted_reward=0`` and a ``reason``.
    Store failures propagate as ``StoreUnavailable`` so the caller can
    retry the whole settlement step.
    """

    def __init__(self, config: RiskConfig | None = None, clock: Clock = timezone.now) -> None:
        self.config = config or RiskConfig.from_settings()
        self.clock = clock

    def reload_config(self, config: RiskConfig | None = None) -> None:
        self.config = config or RiskConfig.from_settings()

    # ------------------------------------------------------------------
    #  Race-log reads
    # ------------------------------------------------------------------
    def recent_samples(self, wallet: str) -> list[RaceSample]:
        rows = (
            _race_log_model().objects
            .filter(wallet_address=wallet)
            .order_by("-raced_at")
            .values_list("raced_at", "duration_ms", "won", "np_earned")[: self.config.window_size]
        )
        return [RaceSample(*row) for row in reversed(list(rows))]

    def daily_activity(self, wallet: str) -> DailyActivity:
        start, end = _utc_day_bounds(self.clock())
        totals = (
            _race_log_model().objects
            .filter(wallet_address=wallet, raced_at__gte=start, raced_at__lt=end)
            .aggregate(earnings=Sum("np_earned"), races=Count("id"))
        )
        return DailyActivity(earnings=totals["earnings"] or 0, races=totals["races"] or 0)

    # ------------------------------------------------------------------
    #  Profile
    # ------------------------------------------------------------------
    def get_profile(self, wallet: str) -> BehaviorProfile:
        wallet = ensure_wallet(wallet)
        with store_guard("get_profile"):
            profile = BehaviorProfile.objects.filter(wallet_address=wallet).first()
        if profile is None:
            raise NotFound(f"No behavior profile for wallet {wallet}.")
        return profile

    def refresh_profile(self, wallet: str) -> BehaviorProfile:
        """
        Recompute the wallet's dimensions and move its penalty tier.

        A profile whose block is still active is returned unchanged.
        """
        wallet = ensure_wallet(wallet)
        now = self.clock()
        with store_guard("refresh_profile"), transaction.atomic():
            profile, _ = BehaviorProfile.objects.select_for_update().get_or_create(
                wallet_address=wallet,
            )
            if profile.is_blocked(now):
                return profile

            samples = self.recent_samples(wallet)
            dimensions = compute_dimensions(samples, self.config)
            score = composite_score(dimensions, self.config)
            level = classify_risk(score, self.config)
            previous_tier = profile.penalty_tier
            tier = next_penalty_tier(previous_tier, level)

            profile.behavior_score = score
            profile.interval_score = dimensions.interval_score
            profile.variability_score = dimensions.variability_score
            profile.winrate_score = dimensions.winrate_score
            profile.pattern_score = dimensions.pattern_score
            profile.risk_level = level
            profile.penalty_tier = tier
            profile.reward_multiplier = reward_multiplier(level, self.config)
            profile.forced_cooldown_seconds = cooldown_seconds(level, self.config)
            profile.blocked_until = (
                now + timedelta(seconds=self.config.block_seconds)
                if tier == PenaltyTier.BLOCKED
                else None
            )
            if tier in (PenaltyTier.FLAGGED, PenaltyTier.BLOCKED) and not profile.flagged:
                profile.flagged = True
                profile.flagged_at = now
            if samples:
                profile.last_race_at = samples[-1].raced_at
            profile.last_calculated_at = now
            profile.save()

        self._invalidate_gate(wallet)
        if tier != previous_tier:
            log = logger.warning if tier in (PenaltyTier.FLAGGED, PenaltyTier.BLOCKED) else logger.info
            log(
                "Penalty tier for %s: %s → %s (score=%s, risk=%s)",
                wallet, previous_tier, tier, score, level,
            )
        return profile

    # ------------------------------------------------------------------
    #  Assessment
    # ------------------------------------------------------------------
    def assess_risk(self, wallet: str, base_reward: int, source: str = "race") -> RiskAssessment:
        """
        Adjust ``base_reward`` for the wallet's current risk.

        Raises:
            InvalidWallet:    ``wallet`` is blank.
            InvalidAmount:    ``base_reward`` is not a non-negative integer.
            StoreUnavailable: the profile or race log could not be read.
        """
        wallet = ensure_wallet(wallet)
        base_reward = ensure_amount(base_reward, allow_zero=True)
        now = self.clock()

        with store_guard("assess_risk"):
            stored = BehaviorProfile.objects.filter(wallet_address=wallet).first()
        if stored is not None and stored.is_blocked(now):
            return self._blocked_assessment(stored, base_reward)

        profile = self.refresh_profile(wallet)
        if profile.is_blocked(now):
            return self._blocked_assessment(profile, base_reward)

        with store_guard("assess_risk"):
            activity = self.daily_activity(wallet)

        level = RiskLevel(profile.risk_level)
        multiplier = reward_multiplier(level, self.config)
        cap = daily_cap(level, self.config)
        remaining_cap = max(0, cap - activity.earnings)
        adjusted = min(round_half_up(base_reward * multiplier), remaining_cap)

        assessment = RiskAssessment(
            risk_level=level,
            reward_multiplier=multiplier,
            blocked=adjusted == 0 and level == RiskLevel.CRITICAL,
            reason=self._reason(level, adjusted, remaining_cap),
            adjusted_reward=adjusted,
            original_reward=base_reward,
            penalty_tier=profile.penalty_tier,
            recommendations=self._recommendations(profile, level, activity, cap),
            behavior_score=profile.behavior_score,
            daily_earnings=activity.earnings,
            daily_cap=cap,
        )
        logger.info(
            "Risk assessment %s (%s): %s → %s NP [%s, score=%s]",
            wallet, source, base_reward, adjusted, level, profile.behavior_score,
        )
        return assessment

    def _blocked_assessment(self, profile: BehaviorProfile, base_reward: int) -> RiskAssessment:
        logger.warning(
            "Reward for blocked wallet %s withheld (%s NP, blocked until %s)",
            profile.wallet_address, base_reward, profile.blocked_until.isoformat(),
        )
        return RiskAssessment(
            risk_level=RiskLevel.CRITICAL,
            reward_multiplier=0.0,
            blocked=True,
            reason=f"Blocked until {profile.blocked_until.isoformat()}",
            adjusted_reward=0,
            original_reward=base_reward,
            penalty_tier=profile.penalty_tier,
            recommendations=["Investigate player activity", "Review race patterns"],
            behavior_score=profile.behavior_score,
        )

    @staticmethod
    def _reason(level: str, adjusted: int, remaining_cap: int) -> str:
        if adjusted == 0 and remaining_cap == 0 and level != RiskLevel.CRITICAL:
            return "Daily cap reached"
        return {
            RiskLevel.LOW: "Verified player",
            RiskLevel.MEDIUM: "Reward reduced: irregular behavior",
            RiskLevel.HIGH: "Minimal reward: high probability of automation",
            RiskLevel.CRITICAL: "Reward blocked: automated activity",
        }[level]

    def _recommendations(
        self,
        profile: BehaviorProfile,
        level: str,
        activity: DailyActivity,
        cap: int,
    ) -> list[str]:
        recommendations: list[str] = []
        if level == RiskLevel.MEDIUM:
            recommendations.append("Monitor: slightly irregular behavior")
        elif level == RiskLevel.HIGH:
            recommendations.append("Investigate: high probability of automation")
            recommendations.append("Consider a manual block if it persists")
        elif level == RiskLevel.CRITICAL:
            if profile.penalty_tier == PenaltyTier.FLAGGED:
                recommendations.append("Flagged: the next critical assessment blocks the wallet")
            recommendations.append("Review race-cadence history")

        if cap > 0 and activity.earnings >= cap * NEAR_CAP_RATIO:
            recommendations.append(f"Close to daily cap: {activity.earnings}/{cap} NP")

        alert = self.config.dimension_alert_score
        if profile.interval_score < alert:
            recommendations.append("Race intervals too regular: scheduler pattern")
        if profile.variability_score < alert:
            recommendations.append("Race durations nearly identical")
        if profile.winrate_score < alert:
            recommendations.append("Abnormally high win rate")
        if profile.pattern_score < alert:
            recommendations.append("Repetitive NP earnings")
        return recommendations

    # ------------------------------------------------------------------
    #  Pre-race gate
    # ------------------------------------------------------------------
    def can_player_race(self, wallet: str) -> RaceGate:
        """
        Cheap gate called once per race attempt.

        Uses only the stored block and cooldown state; no behavior
        recomputation.  Enforces the risk cooldown only for wallets with
        a penalty tier.
        """
        wallet = ensure_wallet(wallet)
        entry = self._gate_entry(wallet)
        now = self.clock()
        tier = entry["penalty_tier"]

        blocked_until = entry["blocked_until"]
        if blocked_until is not None and blocked_until > now:
            return RaceGate(
                allowed=False,
                reason=f"Blocked: {tier}",
                penalty_tier=tier,
                wait_seconds=math.ceil((blocked_until - now).total_seconds()),
            )

        last_race_at = entry["last_race_at"]
        if tier != PenaltyTier.NONE and last_race_at is not None:
            ready_at = last_race_at + timedelta(seconds=entry["forced_cooldown_seconds"])
            if ready_at > now:
                return RaceGate(
                    allowed=False,
                    reason=f"Cooldown active: {tier}",
                    penalty_tier=tier,
                    wait_seconds=math.ceil((ready_at - now).total_seconds()),
                )

        return RaceGate(allowed=True, reason="OK", penalty_tier=tier)

    def record_race(self, wallet: str, raced_at: datetime) -> None:
        """Advance ``last_race_at`` so the cooldown runs from this race."""
        wallet = ensure_wallet(wallet)
        with store_guard("record_race"):
            BehaviorProfile.objects.filter(
                Q(last_race_at__isnull=True) | Q(last_race_at__lt=raced_at),
                wallet_address=wallet,
            ).update(last_race_at=raced_at)
        self._invalidate_gate(wallet)

    def _gate_entry(self, wallet: str) -> dict[str, Any]:
        key = GATE_CACHE_PREFIX + wallet
        entry = cache.get(key)
        if entry is None:
            with store_guard("can_player_race"):
                entry = (
                    BehaviorProfile.objects
                    .filter(wallet_address=wallet)
                    .values("penalty_tier", "blocked_until", "forced_cooldown_seconds", "last_race_at")
                    .first()
                )
            if entry is None:
                entry = {
                    "penalty_tier": PenaltyTier.NONE.value,
                    "blocked_until": None,
                    "forced_cooldown_seconds": cooldown_seconds(RiskLevel.LOW, self.config),
                    "last_race_at": None,
                }
            cache.set(key, entry, self.config.profile_cache_seconds)
        return entry

    @staticmethod
    def _invalidate_gate(wallet: str) -> None:
        cache.delete(GATE_CACHE_PREFIX + wallet)

    # ------------------------------------------------------------------
    #  Administration
    # ------------------------------------------------------------------
    def clear_profile(self, wallet: str) -> BehaviorProfile:
        """Lift every penalty from ``wallet`` (administrator action)."""
        profile = self.get_profile(wallet)
        with store_guard("clear_profile"):
            profile = atomic_transition(
                instance=profile,
                status_field="penalty_tier",
                target_status=PenaltyTier.NONE,
                updates={
                    "flagged": False,
                    "flagged_at": None,
                    "blocked_until": None,
                    "reward_multiplier": reward_multiplier(RiskLevel.LOW, self.config),
                    "forced_cooldown_seconds": cooldown_seconds(RiskLevel.LOW, self.config),
                },
            )
        self._invalidate_gate(profile.wallet_address)
        logger.warning("Behavior profile for %s cleared by administrator", profile.wallet_address)
        return profile


# ═══════════════════════════════════════════════════════════════════
#  Security Report
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SecurityReport:
    generated_at: datetime
    total_players: int
    suspicious_players: int
    flagged_players: int
    blocked_players: int
    total_rewards_blocked: int
    total_rewards_reduced: int
    economic_impact_avoided: int
    player_breakdown: dict[str, int]
    top_suspicious: list[BehaviorProfile]
    recent_flags: list[dict[str, Any]]


class SecurityReportService:
    """
    Aggregates behavior profiles and the last week of race logs.

    NP withheld is exact: every race log stores the reward offered to
    risk assessment (``base_reward``) next to what was credited.
    """

    def __init__(self, config: RiskConfig | None = None, clock: Clock = timezone.now) -> None:
        self.config = config or RiskConfig.from_settings()
        self.clock = clock

    def generate_security_report(self) -> SecurityReport:
        now = self.clock()
        with store_guard("generate_security_report"):
            profiles = BehaviorProfile.objects.all()
            counts = dict(
                profiles.values_list("risk_level").annotate(n=Count("id")).order_by()
            )
            breakdown = {level.lower(): counts.get(level, 0) for level in RiskLevel.values}
            total = sum(breakdown.values())

            low_threshold = self.config.min_score(RiskLevel.LOW)
            top_suspicious = list(
                profiles.filter(behavior_score__lt=low_threshold)
                .order_by("behavior_score", "wallet_address")[:TOP_SUSPICIOUS_LIMIT]
            )
            recent_flags = [
                {
                    "wallet": p.wallet_address,
                    "score": p.behavior_score,
                    "tier": p.penalty_tier,
                    "flagged_at": p.flagged_at,
                }
                for p in profiles.filter(flagged=True).order_by("-flagged_at")[:RECENT_FLAGS_LIMIT]
            ]

            withheld = (
                _race_log_model().objects
                .filter(raced_at__gte=now - timedelta(days=SECURITY_REPORT_DAYS))
                .aggregate(
                    blocked=Sum("base_reward", filter=Q(np_earned=0, base_reward__gt=0)),
                    offered=Sum("base_reward", filter=Q(np_earned__gt=0)),
                    credited=Sum("np_earned", filter=Q(np_earned__gt=0)),
                )
            )

            flagged_players = profiles.filter(flagged=True).count()
            blocked_players = profiles.filter(blocked_until__gt=now).count()

        rewards_blocked = withheld["blocked"] or 0
        rewards_reduced = (withheld["offered"] or 0) - (withheld["credited"] or 0)
        return SecurityReport(
            generated_at=now,
            total_players=total,
            suspicious_players=total - breakdown["low"],
            flagged_players=flagged_players,
            blocked_players=blocked_players,
            total_rewards_blocked=rewards_blocked,
            total_rewards_reduced=rewards_reduced,
            economic_impact_avoided=rewards_blocked + rewards_reduced,
            player_breakdown=breakdown,
            top_suspicious=top_suspicious,
            recent_flags=recent_flags,
        )
