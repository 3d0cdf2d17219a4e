"""
Pure risk-policy tests — no database.

Covers:
  1. Score → risk level classification and the policy tables
  2. Penalty tier transitions
  3. RiskConfig validation
  4. Behavior dimension statistics
  5. Bot-attack simulator and its management command
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone as dt_timezone
from io import StringIO

import pytest
from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command

from antibot.behavior import (
    BehaviorDimensions,
    RaceSample,
    compute_dimensions,
    interval_score,
    pattern_score,
    variability_score,
    winrate_score,
)
from antibot.classifier import (
    classify_risk,
    composite_score,
    cooldown_seconds,
    daily_cap,
    next_penalty_tier,
    reward_multiplier,
    validate_tier_transition,
)
from antibot.config import RiskConfig
from antibot.models import RISK_LEVEL_ORDER, PenaltyTier, RiskLevel
from antibot.simulator import AgentType, simulate_bot_attack
from core.domain.exceptions import InvalidTransition

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


def _at(*offsets_seconds):
    return [T0 + timedelta(seconds=s) for s in offsets_seconds]


# ════════════════════════════════════════════════════════════════════
#  1. Classification
# ════════════════════════════════════════════════════════════════════

class TestClassifyRisk:

    @pytest.mark.parametrize(
        "score,level",
        [
            (100, RiskLevel.LOW),
            (70, RiskLevel.LOW),
            (69, RiskLevel.MEDIUM),
            (50, RiskLevel.MEDIUM),
            (49, RiskLevel.HIGH),
            (30, RiskLevel.HIGH),
            (29, RiskLevel.CRITICAL),
            (0, RiskLevel.CRITICAL),
        ],
    )
    def test_thresholds(self, score, level):
        assert classify_risk(score) == level

    def test_policy_never_rewards_a_lower_score_more(self):
        previous = None
        for score in range(101):
            level = classify_risk(score)
            current = (reward_multiplier(level), daily_cap(level), -cooldown_seconds(level))
            if previous is not None:
                assert current >= previous
            previous = current

    def test_policy_tables(self):
        assert [reward_multiplier(level) for level in RISK_LEVEL_ORDER] == [1.0, 0.5, 0.25, 0.0]
        assert [daily_cap(level) for level in RISK_LEVEL_ORDER] == [2000, 800, 200, 0]
        assert [cooldown_seconds(level) for level in RISK_LEVEL_ORDER] == [120, 300, 600, 3600]

    def test_composite_is_rounded_weighted_mean(self):
        dims = BehaviorDimensions(interval_score=0, variability_score=0, winrate_score=38, pattern_score=100)
        assert composite_score(dims) == 35

    def test_composite_respects_weights(self):
        config = RiskConfig(
            dimension_weights={"interval": 3, "variability": 1, "winrate": 0, "pattern": 0},
        )
        dims = BehaviorDimensions(interval_score=100, variability_score=0, winrate_score=0, pattern_score=0)
        assert composite_score(dims, config) == 75


# ════════════════════════════════════════════════════════════════════
#  2. Penalty tiers
# ════════════════════════════════════════════════════════════════════

class TestPenaltyTiers:

    @pytest.mark.parametrize(
        "current,level,expected",
        [
            (PenaltyTier.NONE, RiskLevel.LOW, PenaltyTier.NONE),
            (PenaltyTier.NONE, RiskLevel.MEDIUM, PenaltyTier.WARNING),
            (PenaltyTier.WARNING, RiskLevel.HIGH, PenaltyTier.SUSPECT),
            (PenaltyTier.NONE, RiskLevel.CRITICAL, PenaltyTier.FLAGGED),
            (PenaltyTier.FLAGGED, RiskLevel.CRITICAL, PenaltyTier.BLOCKED),
            (PenaltyTier.BLOCKED, RiskLevel.CRITICAL, PenaltyTier.BLOCKED),
            (PenaltyTier.BLOCKED, RiskLevel.LOW, PenaltyTier.NONE),
            (PenaltyTier.FLAGGED, RiskLevel.MEDIUM, PenaltyTier.WARNING),
        ],
    )
    def test_next_tier(self, current, level, expected):
        assert next_penalty_tier(current, level) == expected

    @pytest.mark.parametrize("current", [PenaltyTier.NONE, PenaltyTier.WARNING, PenaltyTier.SUSPECT])
    def test_blocked_requires_flagged_first(self, current):
        with pytest.raises(InvalidTransition):
            validate_tier_transition(current, PenaltyTier.BLOCKED)

    def test_flagged_may_be_blocked(self):
        validate_tier_transition(PenaltyTier.FLAGGED, PenaltyTier.BLOCKED)


# ════════════════════════════════════════════════════════════════════
#  3. Configuration
# ════════════════════════════════════════════════════════════════════

class TestRiskConfig:

    def test_defaults_are_valid(self):
        config = RiskConfig()
        assert config.min_score(RiskLevel.LOW) == 70
        assert config.min_score(RiskLevel.CRITICAL) == 0

    def test_thresholds_must_strictly_decrease(self):
        with pytest.raises(ImproperlyConfigured):
            RiskConfig(thresholds={"LOW": 50, "MEDIUM": 50, "HIGH": 30})

    def test_multipliers_must_not_increase_with_risk(self):
        with pytest.raises(ImproperlyConfigured):
            RiskConfig(multipliers={"LOW": 0.5, "MEDIUM": 1.0, "HIGH": 0.25, "CRITICAL": 0.0})

    def test_daily_caps_must_not_increase_with_risk(self):
        with pytest.raises(ImproperlyConfigured):
            RiskConfig(daily_caps={"LOW": 100, "MEDIUM": 800, "HIGH": 200, "CRITICAL": 0})

    def test_missing_level_is_rejected(self):
        with pytest.raises(ImproperlyConfigured):
            RiskConfig(cooldowns={"LOW": 120, "MEDIUM": 300, "HIGH": 600})

    def test_from_settings_applies_overrides(self, settings):
        settings.NITRO_RISK = {"block_seconds": 60}
        assert RiskConfig.from_settings().block_seconds == 60

    def test_from_settings_rejects_unknown_keys(self, settings):
        settings.NITRO_RISK = {"block_secs": 60}
        with pytest.raises(ImproperlyConfigured):
            RiskConfig.from_settings()


# ════════════════════════════════════════════════════════════════════
#  4. Behavior dimensions
# ════════════════════════════════════════════════════════════════════

class TestBehaviorDimensions:

    def test_too_few_samples_scores_human(self):
        assert interval_score(_at(0, 60, 120)) == 100
        assert variability_score([30_000] * 3) == 100
        assert winrate_score([True] * 4) == 100
        assert pattern_score([50] * 3) == 100

    def test_scheduler_intervals_score_zero(self):
        assert interval_score(_at(*range(0, 1200, 60))) == 0

    def test_irregular_intervals_score_human(self):
        # gaps 30, 90, 30, 90: CV 0.5
        assert interval_score(_at(0, 30, 120, 150, 240)) == 100

    def test_interval_order_does_not_matter(self):
        assert interval_score(_at(240, 0, 150, 30, 120)) == 100

    def test_identical_durations_score_zero(self):
        assert variability_score([30_000] * 5) == 0

    def test_partial_duration_variability(self):
        assert variability_score([100, 100, 100, 115, 85]) == 63

    @pytest.mark.parametrize(
        "results,expected",
        [
            ([True] * 5, 0),
            ([True, True, True, False, False], 100),
            ([True] * 8 + [False] * 2, 50),
            ([False] * 10, 100),
        ],
    )
    def test_winrate(self, results, expected):
        assert winrate_score(results) == expected

    @pytest.mark.parametrize(
        "amounts,expected",
        [
            ([50] * 4, 0),
            ([10, 20, 30, 40, 50], 100),
            ([50] * 3 + [1, 2, 3, 4, 5, 6, 7], 100),
            ([50] * 5 + [1, 2, 3, 4, 5], 71),
        ],
    )
    def test_pattern(self, amounts, expected):
        assert pattern_score(amounts) == expected

    def test_only_the_recent_window_is_scored(self):
        older = [
            RaceSample(raced_at=T0 + timedelta(seconds=i), duration_ms=30_000, won=False, np_earned=i)
            for i in range(5)
        ]
        recent = [
            RaceSample(raced_at=T0 + timedelta(hours=1, seconds=i), duration_ms=30_000, won=False, np_earned=40)
            for i in range(20)
        ]
        dims = compute_dimensions(older + recent)
        assert dims.pattern_score == 0
        assert dims.winrate_score == 100

    def test_unsettled_race_has_no_amount_to_score(self):
        settled = [
            RaceSample(raced_at=T0 + timedelta(minutes=i), duration_ms=30_000, won=False, np_earned=amount)
            for i, amount in enumerate((0, 0, 12, 14, 16, 18, 20))
        ]
        in_flight = RaceSample(raced_at=T0 + timedelta(hours=1), duration_ms=30_000, won=False, np_earned=None)

        assert compute_dimensions(settled + [in_flight]).pattern_score == 100
        assert compute_dimensions(settled).pattern_score == 100


# ════════════════════════════════════════════════════════════════════
#  5. Simulator
# ════════════════════════════════════════════════════════════════════

class TestBotAttackSimulation:

    def test_population_mix(self):
        report = simulate_bot_attack(1000, 0.2, rng=random.Random(7))
        counts = {row.type: row.count for row in report.breakdown}

        assert report.total_humans == 200
        assert report.total_bots == 800
        assert counts == {
            AgentType.HUMAN: 200,
            AgentType.NAIVE_BOT: 280,
            AgentType.SMART_BOT: 200,
            AgentType.FARM_BOT: 200,
            AgentType.HYBRID: 120,
        }
        assert sum(report.risk_distribution.values()) == 1000

    def test_every_bot_is_detected_with_default_policy(self):
        report = simulate_bot_attack(500, 0.2, rng=random.Random(11))

        assert report.detection_rate == 100.0
        assert report.total_detected == report.total_bots
        for row in report.breakdown:
            if row.type in (AgentType.NAIVE_BOT, AgentType.FARM_BOT):
                group = [a for a in report.agents if a.type == row.type]
                assert all(a.risk_level == RiskLevel.CRITICAL for a in group)
                assert row.np_blocked == sum(a.np_requested for a in group)

    def test_np_is_conserved(self):
        report = simulate_bot_attack(300, 0.3, rng=random.Random(3))
        assert report.total_np_requested == report.total_np_distributed + report.total_np_blocked
        assert 0 <= report.economic_protection <= 100
        for agent in report.agents:
            assert agent.np_received <= agent.daily_cap

    def test_same_seed_same_outcome(self):
        first = simulate_bot_attack(200, 0.25, rng=random.Random(42))
        second = simulate_bot_attack(200, 0.25, rng=random.Random(42))
        assert first.breakdown == second.breakdown
        assert first.risk_distribution == second.risk_distribution

    def test_empty_population(self):
        report = simulate_bot_attack(0, 0.2, rng=random.Random(1))
        assert report.total_bots == 0
        assert report.detection_rate == 0.0
        assert report.false_positive_rate == 0.0

    @pytest.mark.parametrize("total,ratio", [(-1, 0.2), (10, 1.5), (10, -0.1)])
    def test_invalid_arguments(self, total, ratio):
        with pytest.raises(ValueError):
            simulate_bot_attack(total, ratio)

    def test_management_command(self):
        out = StringIO()
        call_command("simulate_bot_attack", bots=100, seed=5, stdout=out)
        output = out.getvalue()
        assert "Bot Attack Simulation" in output
        assert "Detection rate: 100.00%" in output
