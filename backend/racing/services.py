"""
Racing app Service Layer.

Architecture
------------
- ``RacePreparationService`` — pre-race gate plus the opponent the
                               player will face.
- ``RaceSettlementService``  — turns a finished race into NP:

      curve reward  →  anti-farm cut  →  risk assessment
                    →  emission (daily + hard cap)  →  race log

Reward composition
------------------
Policies compose multiplicatively, in this order, and caps only ever
lower the result::

    curve    = round(base × ln(PS+1)/ln(101) × (1 + handling bonus))
    offered  = round(curve × anti-farm multiplier)
    adjusted = min(round(offered × risk multiplier), risk daily cap left)
    emitted  = min(adjusted, emission daily limit left, hard cap left)

At-most-once
------------
``settle_race`` claims the race-log row (unique ``race_id``) inside the
same transaction that mints.  A second call with the same ``race_id``
returns the original settlement flagged ``duplicate=True`` and credits
nothing.  If the ledger store fails the whole step rolls back, the claim
included, and ``StoreUnavailable`` propagates so the game server can
retry.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from django.db import IntegrityError, transaction
from django.utils import timezone

from antibot.services import RaceGate, RiskAssessment, RiskAssessmentService
from core.domain.exceptions import DomainError, StoreUnavailable
from core.domain.transactions import store_guard
from core.domain.validation import ensure_amount, ensure_wallet
from economy.services import EmissionController, EmissionReason, EmissionResult

from .balancing import (
    AntiFarmAdjustment,
    BalancingConfig,
    CollisionResult,
    OpponentStats,
    VehicleAttributes,
    apply_anti_farm,
    calculate_power_score,
    calculate_reward,
    generate_opponent_stats,
    get_anti_farm_adjustment,
    get_dynamic_difficulty,
    roll_collision,
)
from .models import RaceLog

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

MAX_RACE_ID_LENGTH = 64


def recent_results(wallet: str, window: int) -> tuple[int, int]:
    """``(wins, races)`` over the wallet's last ``window`` race-log rows."""
    results = list(
        RaceLog.objects
        .filter(wallet_address=wallet)
        .order_by("-raced_at")
        .values_list("won", flat=True)[:window]
    )
    return sum(1 for won in results if won), len(results)


# ═══════════════════════════════════════════════════════════════════
#  Result types
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RacePreparation:
    gate: RaceGate
    power_score: float | None = None
    difficulty: float | None = None
    anti_farm: AntiFarmAdjustment | None = None
    opponent: OpponentStats | None = None

    @property
    def allowed(self) -> bool:
        return self.gate.allowed


@dataclass(frozen=True)
class RaceSettlement:
    race_id: str
    wallet: str
    won: bool
    offered_reward: int
    np_earned: int
    xp_earned: int
    duplicate: bool = False
    power_score: float | None = None
    curve_reward: int | None = None
    anti_farm: AntiFarmAdjustment | None = None
    assessment: RiskAssessment | None = None
    emission: EmissionResult | None = None
    collision: CollisionResult | None = None

    @classmethod
    def from_log(cls, log: RaceLog) -> "RaceSettlement":
        return cls(
            race_id=log.race_id,
            wallet=log.wallet_address,
            won=log.won,
            offered_reward=log.base_reward,
            np_earned=log.np_earned,
            xp_earned=log.xp_earned,
            duplicate=True,
        )


# ═══════════════════════════════════════════════════════════════════
#  Race Preparation
# ═══════════════════════════════════════════════════════════════════


class RacePreparationService:
    """
    Runs before a race starts.

    Only the cheap risk gate is consulted; no behavior recomputation.
    A refused wallet gets the gate result alone.
    """

    def __init__(
        self,
        config: BalancingConfig | None = None,
        risk: RiskAssessmentService | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or BalancingConfig.from_settings()
        self.risk = risk or RiskAssessmentService()
        self.rng = rng or random.Random()

    def prepare_race(
        self,
        wallet: str,
        attributes: VehicleAttributes,
        player_level: int = 1,
    ) -> RacePreparation:
        wallet = ensure_wallet(wallet)
        player_level = ensure_amount(player_level)

        gate = self.risk.can_player_race(wallet)
        if not gate.allowed:
            logger.info("Race refused for %s: %s", wallet, gate.reason)
            return RacePreparation(gate=gate)

        power_score = calculate_power_score(attributes, self.config)
        with store_guard("prepare_race"):
            wins, races = recent_results(wallet, self.config.anti_farm_window)
        anti_farm = get_anti_farm_adjustment(wins, races, self.config)
        opponent = generate_opponent_stats(
            power_score,
            player_level,
            rng=self.rng,
            difficulty_boost=anti_farm.difficulty_boost,
            config=self.config,
        )
        return RacePreparation(
            gate=gate,
            power_score=round(power_score, 2),
            difficulty=round(get_dynamic_difficulty(power_score, self.config) + anti_farm.difficulty_boost, 2),
            anti_farm=anti_farm,
            opponent=opponent,
        )


# ═══════════════════════════════════════════════════════════════════
#  Race Settlement
# ═══════════════════════════════════════════════════════════════════


class RaceSettlementService:
    """
    Credits one finished race, at most once per ``race_id``.

    Blocked, capped or penalised wallets are a normal outcome: the
    settlement is recorded with whatever was actually minted (possibly 0)
    and the assessment explains why.
    """

    def __init__(
        self,
        config: BalancingConfig | None = None,
        risk: RiskAssessmentService | None = None,
        emission: EmissionController | None = None,
        rng: random.Random | None = None,
        clock: Clock = timezone.now,
    ) -> None:
        self.config = config or BalancingConfig.from_settings()
        self.risk = risk or RiskAssessmentService(clock=clock)
        self.emission = emission or EmissionController(clock=clock)
        self.rng = rng or random.Random()
        self.clock = clock

    def settle_race(
        self,
        race_id: str,
        wallet: str,
        attributes: VehicleAttributes,
        won: bool,
        duration_ms: int,
        base_reward: int,
        xp_earned: int = 0,
        source: str = "race",
        car_id: str = "",
    ) -> RaceSettlement:
        """
        Settle a race.

        Raises:
            InvalidWallet:    ``wallet`` is blank.
            InvalidAmount:    ``duration_ms`` is not positive, or
                              ``base_reward`` / ``xp_earned`` is negative.
            DomainError:      ``race_id`` is blank or too long.
            StoreUnavailable: nothing was recorded; retry the settlement.
        """
        race_id = self._ensure_race_id(race_id)
        wallet = ensure_wallet(wallet)
        duration_ms = ensure_amount(duration_ms)
        base_reward = ensure_amount(base_reward, allow_zero=True)
        xp_earned = ensure_amount(xp_earned, allow_zero=True)
        won = bool(won)
        raced_at = self.clock()

        with store_guard("settle_race"), transaction.atomic():
            duplicate = RaceLog.objects.filter(race_id=race_id).first()
            if duplicate is not None:
                logger.info("Race %s already settled; nothing credited", race_id)
                return RaceSettlement.from_log(duplicate)

            # Anti-farm looks at the races before this one.
            wins, races = recent_results(wallet, self.config.anti_farm_window)
            power_score = calculate_power_score(attributes, self.config)
            curve_reward = calculate_reward(base_reward, power_score, attributes.handling, self.config)
            anti_farm = get_anti_farm_adjustment(wins, races, self.config)
            offered = apply_anti_farm(curve_reward, anti_farm)

            try:
                with transaction.atomic():
                    log = RaceLog.objects.create(
                        race_id=race_id,
                        wallet_address=wallet,
                        car_id=car_id,
                        source=source,
                        won=won,
                        base_reward=offered,
                        np_earned=None,
                        xp_earned=xp_earned,
                        duration_ms=duration_ms,
                        raced_at=raced_at,
                    )
            except IntegrityError:
                logger.info("Race %s settled concurrently; nothing credited", race_id)
                return RaceSettlement.from_log(RaceLog.objects.get(race_id=race_id))

            assessment = self.risk.assess_risk(wallet, offered, source)

            emission = None
            if assessment.adjusted_reward > 0:
                emission = self.emission.emit_tokens(wallet, assessment.adjusted_reward, reason=source)
                if emission.reason == EmissionReason.STORE_UNAVAILABLE:
                    raise StoreUnavailable(f"Emission for race {race_id} could not be applied.")

            np_earned = emission.emitted if emission is not None else 0
            log.np_earned = np_earned
            log.save(update_fields=["np_earned"])

        self.risk.record_race(wallet, raced_at)
        collision = roll_collision(self.config.collision, attributes.durability, self.rng, self.config)

        logger.info(
            "Race %s settled for %s: base=%s curve=%s offered=%s adjusted=%s minted=%s",
            race_id, wallet, base_reward, curve_reward, offered,
            assessment.adjusted_reward, np_earned,
        )
        return RaceSettlement(
            race_id=race_id,
            wallet=wallet,
            won=won,
            offered_reward=offered,
            np_earned=np_earned,
            xp_earned=xp_earned,
            power_score=round(power_score, 2),
            curve_reward=curve_reward,
            anti_farm=anti_farm,
            assessment=assessment,
            emission=emission,
            collision=collision,
        )

    @staticmethod
    def _ensure_race_id(race_id: str) -> str:
        if not isinstance(race_id, str) or not race_id.strip():
            raise DomainError("race_id must be a non-empty string.")
        race_id = race_id.strip()
        if len(race_id) > MAX_RACE_ID_LENGTH:
            raise DomainError(f"race_id must be at most {MAX_RACE_ID_LENGTH} characters.")
        return race_id
