"""
Race preparation and settlement tests.

Covers:
  1. Crediting a race end to end (curve → risk → emission → log)
  2. At-most-once settlement per race_id
  3. Blocked wallets, anti-farm cuts and emission caps
  4. Store failures roll the whole settlement back
  5. Pre-race preparation
"""

from __future__ import annotations

import random
from datetime import date, timedelta
from unittest import mock

import pytest
from django.db import DatabaseError

from antibot.behavior import pattern_score
from antibot.config import RiskConfig
from antibot.models import BehaviorProfile, PenaltyTier, RiskLevel
from antibot.services import RiskAssessmentService
from core.domain.exceptions import DomainError, InvalidAmount, StoreUnavailable
from economy.config import EconomyConfig
from economy.models import EconomyEvent, EconomyEventType, EconomyState
from economy.services import EmissionController, EmissionReason
from racing.balancing import BalancingConfig, CollisionResult, VehicleAttributes
from racing.models import RaceLog
from racing.services import RacePreparationService, RaceSettlementService

WALLET = "0xRACER"
MAXED = VehicleAttributes(speed=100, acceleration=100, handling=100, durability=100)

# Constant 5 000 NP/day: no weekly decay in these tests.
FLAT_ECONOMY = EconomyConfig(base_daily_limit=5_000, min_daily_limit=1_000, decay_rate_percent=0)


@pytest.fixture()
def risk(db, fixed_clock):
    return RiskAssessmentService(config=RiskConfig(), clock=fixed_clock)


@pytest.fixture()
def settlement(risk, fixed_clock):
    return RaceSettlementService(
        config=BalancingConfig(),
        risk=risk,
        emission=EmissionController(config=FLAT_ECONOMY, clock=fixed_clock),
        rng=random.Random(1),
        clock=fixed_clock,
    )


@pytest.fixture()
def preparation(risk):
    return RacePreparationService(config=BalancingConfig(), risk=risk, rng=random.Random(1))


def settle(service, race_id="race-1", *, won=True, base_reward=100, duration_ms=30_000, **kwargs):
    return service.settle_race(
        race_id=race_id,
        wallet=kwargs.pop("wallet", WALLET),
        attributes=kwargs.pop("attributes", MAXED),
        won=won,
        duration_ms=duration_ms,
        base_reward=base_reward,
        **kwargs,
    )


def winning_streak(wallet, now):
    """
    Ten earlier wins today with irregular gaps, durations and payouts.

    Only the win rate looks scripted, so the wallet stays LOW risk while
    the anti-farm rule sees a 100% win rate.
    """
    for i, minutes_ago in enumerate((300, 250, 240, 190, 180, 130, 120, 70, 60, 10)):
        RaceLog.objects.create(
            race_id=f"{wallet}-streak-{i}",
            wallet_address=wallet,
            won=True,
            base_reward=10 + i,
            np_earned=10 + i,
            duration_ms=20_000 if i % 2 else 40_000,
            raced_at=now - timedelta(minutes=minutes_ago),
        )


# ═══════════════════════════════════════════════════════════════════
#  1. Crediting
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestSettleRace:

    def test_new_race_is_credited(self, settlement, fixed_clock):
        result = settle(settlement, xp_earned=40, car_id="car-7")

        assert result.duplicate is False
        assert result.curve_reward == 115
        assert result.offered_reward == 115
        assert result.assessment.risk_level == RiskLevel.LOW
        assert result.emission.emitted == 115
        assert result.np_earned == 115
        assert result.xp_earned == 40
        assert isinstance(result.collision, CollisionResult)

        log = RaceLog.objects.get(race_id="race-1")
        assert log.np_earned == 115
        assert log.base_reward == 115
        assert log.car_id == "car-7"
        assert log.raced_at == fixed_clock.now

        state = EconomyState.load()
        assert state.total_minted == 115
        assert state.daily_emitted == 115
        mint = EconomyEvent.objects.get(event_type=EconomyEventType.MINT)
        assert (mint.amount, mint.wallet) == (115, WALLET)

    def test_race_marks_profile_activity(self, settlement, fixed_clock):
        settle(settlement)
        profile = BehaviorProfile.objects.get(wallet_address=WALLET)
        assert profile.last_race_at == fixed_clock.now

    def test_duplicate_race_is_not_credited_twice(self, settlement, fixed_clock):
        first = settle(settlement)
        fixed_clock.advance(minutes=5)
        second = settle(settlement)

        assert second.duplicate is True
        assert second.np_earned == first.np_earned == 115
        assert second.assessment is None
        assert RaceLog.objects.filter(race_id="race-1").count() == 1
        assert EconomyState.load().total_minted == 115
        assert EconomyEvent.objects.count() == 1

    def test_zero_base_reward_records_without_minting(self, settlement):
        result = settle(settlement, base_reward=0)

        assert result.np_earned == 0
        assert result.emission is None
        assert RaceLog.objects.filter(race_id="race-1", np_earned=0).exists()
        assert not EconomyEvent.objects.exists()

    @pytest.mark.parametrize(
        "overrides,error",
        [
            ({"race_id": "  "}, DomainError),
            ({"race_id": "r" * 65}, DomainError),
            ({"duration_ms": 0}, InvalidAmount),
            ({"base_reward": -5}, InvalidAmount),
            ({"xp_earned": -1}, InvalidAmount),
        ],
    )
    def test_invalid_input(self, settlement, overrides, error):
        with pytest.raises(error):
            settle(settlement, **overrides)
        assert not RaceLog.objects.exists()


# ═══════════════════════════════════════════════════════════════════
#  2. Policies that lower the reward
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestRewardPolicies:

    def test_blocked_wallet_is_logged_with_nothing_minted(self, settlement, fixed_clock):
        BehaviorProfile.objects.create(
            wallet_address=WALLET,
            behavior_score=10,
            risk_level=RiskLevel.CRITICAL,
            penalty_tier=PenaltyTier.BLOCKED,
            reward_multiplier=0.0,
            blocked_until=fixed_clock.now + timedelta(hours=3),
        )

        result = settle(settlement)

        assert result.assessment.blocked is True
        assert result.emission is None
        assert result.np_earned == 0
        log = RaceLog.objects.get(race_id="race-1")
        assert (log.base_reward, log.np_earned) == (115, 0)
        assert not EconomyEvent.objects.exists()

    def test_anti_farm_cuts_a_winning_streak(self, settlement, fixed_clock):
        winning_streak(WALLET, fixed_clock.now)

        result = settle(settlement, race_id="race-streak", base_reward=200)

        assert result.anti_farm.reward_multiplier == pytest.approx(0.7)
        assert result.curve_reward == 230
        assert result.offered_reward == 161
        assert result.assessment.risk_level == RiskLevel.LOW
        assert result.np_earned == 161

    def test_emission_daily_limit_degrades_the_credit(self, settlement, seed_ledger):
        seed_ledger(total_minted=4_950, daily_emitted=4_950, last_emission_reset=date(2026, 3, 2))

        result = settle(settlement)

        assert result.assessment.adjusted_reward == 115
        assert result.emission.emitted == 50
        assert result.emission.reason == EmissionReason.DAILY_CAP_REACHED
        assert result.np_earned == 50
        assert RaceLog.objects.get(race_id="race-1").np_earned == 50

    def test_exhausted_emission_still_records_the_race(self, settlement, seed_ledger):
        seed_ledger(total_minted=5_000, daily_emitted=5_000, last_emission_reset=date(2026, 3, 2))

        result = settle(settlement)

        assert result.emission.emitted == 0
        assert result.np_earned == 0
        assert RaceLog.objects.filter(race_id="race-1", np_earned=0).exists()

    def test_race_being_settled_is_not_scored_as_a_payout(self, settlement, fixed_clock):
        # Two earlier races were capped to 0 NP; the rest paid varied amounts.
        earned = (0, 0, 12, 14, 16, 18, 20)
        for i, (minutes_ago, amount) in enumerate(zip((400, 330, 290, 200, 150, 70, 25), earned)):
            RaceLog.objects.create(
                race_id=f"history-{i}",
                wallet_address=WALLET,
                won=i % 3 == 0,
                base_reward=amount or 40,
                np_earned=amount,
                duration_ms=25_000 + i * 4_000,
                raced_at=fixed_clock.now - timedelta(minutes=minutes_ago),
            )

        settle(settlement, won=False, duration_ms=61_000)

        profile = BehaviorProfile.objects.get(wallet_address=WALLET)
        assert profile.pattern_score == pattern_score(earned)
        assert profile.pattern_score == 100
        assert RaceLog.objects.get(race_id="race-1").np_earned is not None


# ═══════════════════════════════════════════════════════════════════
#  3. Store failures
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestStoreFailure:

    def test_failed_emission_rolls_back_the_claim(self, settlement):
        with mock.patch("economy.services.lock_for_update", side_effect=DatabaseError("down")):
            with pytest.raises(StoreUnavailable):
                settle(settlement)

        assert not RaceLog.objects.exists()
        assert not EconomyEvent.objects.exists()

    def test_retry_after_failure_credits_once(self, settlement):
        with mock.patch("economy.services.lock_for_update", side_effect=DatabaseError("down")):
            with pytest.raises(StoreUnavailable):
                settle(settlement)

        result = settle(settlement)

        assert result.duplicate is False
        assert result.np_earned == 115
        assert EconomyState.load().total_minted == 115

    def test_unreadable_race_log(self, settlement):
        with mock.patch.object(RaceLog.objects, "filter", side_effect=DatabaseError("down")):
            with pytest.raises(StoreUnavailable):
                settle(settlement)


# ═══════════════════════════════════════════════════════════════════
#  4. Preparation
# ═══════════════════════════════════════════════════════════════════


@pytest.mark.django_db
class TestPrepareRace:

    def test_fresh_wallet_gets_an_opponent(self, preparation):
        result = preparation.prepare_race(WALLET, MAXED, player_level=3)

        assert result.allowed is True
        assert result.power_score == pytest.approx(100)
        assert result.difficulty == pytest.approx(90)
        assert result.anti_farm.difficulty_boost == 0
        opponent = result.opponent
        for stat in (opponent.speed, opponent.acceleration, opponent.handling):
            assert 80 <= stat <= 100
        assert opponent.health == 100
        assert opponent.level in (2, 3, 4)

    def test_winning_streak_faces_a_harder_opponent(self, preparation, fixed_clock):
        winning_streak(WALLET, fixed_clock.now)

        result = preparation.prepare_race(WALLET, MAXED)

        assert result.difficulty == pytest.approx(105)
        for stat in (result.opponent.speed, result.opponent.acceleration, result.opponent.handling):
            assert 95 <= stat <= 100

    def test_blocked_wallet_is_refused(self, preparation, fixed_clock):
        BehaviorProfile.objects.create(
            wallet_address=WALLET,
            risk_level=RiskLevel.CRITICAL,
            penalty_tier=PenaltyTier.BLOCKED,
            blocked_until=fixed_clock.now + timedelta(hours=2),
        )

        result = preparation.prepare_race(WALLET, MAXED)

        assert result.allowed is False
        assert result.gate.wait_seconds == 7_200
        assert result.opponent is None
        assert result.power_score is None
