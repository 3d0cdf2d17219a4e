"""
Economy app Service Layer.

This module is the **single source of truth** for every change to the NP
supply.  Views must remain thin: validate input through serializers, call
a service method, and return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``SupplyLedger``          — the only code that writes ``EconomyState``.
                              Each mutator is one ``UPDATE`` on ``F()``
                              expressions; minting is compare-and-swap.
- ``TransactionSplitter``   — 10% burn / 20% reward pool / 70% treasury
                              split of every NP spend.
- ``EmissionController``    — minting of *new* NP under a decaying daily
                              limit and the hard supply cap.
- ``RewardPoolService``     — payouts from the reward pool.
- ``EconomyReportService``  — supply report and sustainability grade.

Design Principles
-----------------
* **No read-modify-write on totals**: counters move in SQL; a failed guard
  updates zero rows and the ledger is unchanged.
* **All-or-nothing**: multi-step mutations run in ``transaction.atomic``;
  the emission path additionally locks the singleton row.
* **Degrade, don't fail**: emission returns a smaller (possibly zero)
  amount with a ``reason`` instead of raising.  Only malformed input
  raises.
* **Lazy daily reset**: ``daily_emitted`` is zeroed by a conditional
  ``UPDATE … WHERE last_emission_reset < today`` on first access of a new
  UTC day; no scheduler is involved.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone as dt_timezone
from typing import Callable

from django.apps import apps
from django.db import DatabaseError, transaction
from django.db.models import F, Q
from django.utils import timezone

from core.domain.exceptions import CapExceeded, InvalidAmount
from core.domain.transactions import conditional_update, lock_for_update
from core.domain.validation import ensure_amount, ensure_wallet

from .config import EconomyConfig
from .models import EconomyEvent, EconomyEventType, EconomyState, SustainabilityScore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_today(clock: Clock) -> date:
    """Current UTC calendar date according to ``clock``."""
    return clock().astimezone(dt_timezone.utc).date()


# ═══════════════════════════════════════════════════════════════════
#  Result types
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class EconomySnapshot:
    """Consistent point-in-time view of the ledger."""

    max_supply: int
    total_minted: int
    total_burned: int
    reward_pool_balance: int
    treasury_balance: int
    daily_emitted: int
    last_emission_reset: date

    @classmethod
    def from_state(cls, state: EconomyState) -> "EconomySnapshot":
        return cls(
            max_supply=state.max_supply,
            total_minted=state.total_minted,
            total_burned=state.total_burned,
            reward_pool_balance=state.reward_pool_balance,
            treasury_balance=state.treasury_balance,
            daily_emitted=state.daily_emitted,
            last_emission_reset=state.last_emission_reset,
        )

    @property
    def circulating_supply(self) -> int:
        return self.total_minted - self.total_burned

    @property
    def circulating_outside_ledger(self) -> int:
        return self.circulating_supply - self.reward_pool_balance - self.treasury_balance

    @property
    def remaining_supply(self) -> int:
        return self.max_supply - self.total_minted


@dataclass(frozen=True)
class SplitPreview:
    burn: int
    reward: int
    treasury: int


@dataclass(frozen=True)
class TransactionResult:
    burned: int
    to_reward_pool: int
    to_treasury: int
    total_burned: int
    reward_pool: int
    treasury: int


class EmissionReason:
    """Values of ``EmissionResult.reason`` when less than requested is minted."""

    DAILY_CAP_REACHED = "daily_cap_reached"
    HARD_CAP_REACHED = "hard_cap_reached"
    STORE_UNAVAILABLE = "store_unavailable"


@dataclass(frozen=True)
class EmissionResult:
    emitted: int
    daily_remaining: int | None = None
    effective_daily_limit: int | None = None
    reason: str | None = None


@dataclass(frozen=True)
class EconomyReport:
    max_supply: int
    total_minted: int
    total_burned: int
    circulating_supply: int
    reward_pool_balance: int
    treasury_balance: int
    burn_rate_percent: float
    avg_daily_burn: float
    days_active: int
    daily_emission_limit: int
    daily_emitted_today: int
    projected_days_to_depletion: int
    sustainability_score: str


# ═══════════════════════════════════════════════════════════════════
#  Supply Ledger
# ═══════════════════════════════════════════════════════════════════


class SupplyLedger:
    """
    Authoritative, single-writer record of the NP supply.

    ``apply_burn``, ``apply_to_pool``, ``apply_to_treasury`` (or all three
    at once through ``apply_split``) and ``apply_mint`` are the mutators
    for incoming NP; ``release_from_pool`` pays NP back out of the reward
    pool.  Every one of them is a single ``UPDATE`` on ``F()`` expressions.
    The mint and pool-release guards fail without changing anything.
    """

    def __init__(self, config: EconomyConfig | None = None, clock: Clock = timezone.now) -> None:
        self.config = config or EconomyConfig.from_settings()
        self.clock = clock

    # ------------------------------------------------------------------
    #  Reads
    # ------------------------------------------------------------------
    def ensure_state(self) -> EconomyState:
        return EconomyState.load(max_supply=self.config.max_supply)

    def snapshot(self) -> EconomySnapshot:
        """Single-row read after the lazy daily reset."""
        self.reset_daily_if_stale()
        state = EconomyState.objects.get(pk=EconomyState.SINGLETON_PK)
        return EconomySnapshot.from_state(state)

    fetch_economy_state = snapshot

    def reset_daily_if_stale(self) -> bool:
        """
        Zero ``daily_emitted`` if the stored reset date is before today (UTC).

        Compare-and-reset: concurrent callers race on the same conditional
        ``UPDATE`` and exactly one of them wins.
        """
        self.ensure_state()
        today = utc_today(self.clock)
        reset = conditional_update(
            EconomyState,
            pk=EconomyState.SINGLETON_PK,
            guard=Q(last_emission_reset__lt=today),
            daily_emitted=0,
            last_emission_reset=today,
        )
        if reset:
            logger.info("Daily emission counter reset for %s", today.isoformat())
        return reset

    # ------------------------------------------------------------------
    #  Mutators
    # ------------------------------------------------------------------
    def apply_burn(self, amount: int) -> None:
        """Permanently remove ``amount`` NP taken from circulating wallets."""
        self.apply_split(burn=amount)

    def apply_to_pool(self, amount: int) -> None:
        self.apply_split(reward=amount)

    def apply_to_treasury(self, amount: int) -> None:
        self.apply_split(treasury=amount)

    def apply_split(self, *, burn: int = 0, reward: int = 0, treasury: int = 0) -> None:
        """
        Move a spend into burn, reward pool and treasury in one ``UPDATE``.

        Wallet balances live outside the ledger, so the wallet store
        authorises the spend; the ledger only records where it went.
        """
        legs = {
            "total_burned": burn,
            "reward_pool_balance": reward,
            "treasury_balance": treasury,
        }
        for value in legs.values():
            ensure_amount(value, allow_zero=True)
        if not any(legs.values()):
            raise InvalidAmount(0)

        self.ensure_state()
        EconomyState.objects.filter(pk=EconomyState.SINGLETON_PK).update(
            **{field: F(field) + value for field, value in legs.items() if value},
        )

    def apply_mint(self, amount: int, *, daily_limit: int | None = None) -> None:
        """
        Mint ``amount`` new NP, counting it against today's emission.

        Raises:
            CapExceeded: ``total_minted + amount`` would exceed
                         ``max_supply``, or ``daily_emitted + amount`` would
                         exceed ``daily_limit`` when one is given.
        """
        amount = ensure_amount(amount)
        self.ensure_state()
        guard = Q(total_minted__lte=F("max_supply") - amount)
        if daily_limit is not None:
            guard &= Q(daily_emitted__lte=daily_limit - amount)

        applied = conditional_update(
            EconomyState,
            pk=EconomyState.SINGLETON_PK,
            guard=guard,
            total_minted=F("total_minted") + amount,
            daily_emitted=F("daily_emitted") + amount,
        )
        if not applied:
            state = EconomyState.objects.get(pk=EconomyState.SINGLETON_PK)
            cap = "hard_cap" if state.total_minted + amount > state.max_supply else "daily_cap"
            raise CapExceeded(amount, cap=cap)
        logger.info("Ledger mint: +%s NP", amount)

    def release_from_pool(self, amount: int) -> bool:
        """Pay ``amount`` out of the reward pool; ``False`` if the pool is short."""
        amount = ensure_amount(amount)
        self.ensure_state()
        return conditional_update(
            EconomyState,
            pk=EconomyState.SINGLETON_PK,
            guard=Q(reward_pool_balance__gte=amount),
            reward_pool_balance=F("reward_pool_balance") - amount,
        )

    # ------------------------------------------------------------------
    #  Supply helpers
    # ------------------------------------------------------------------
    def get_total_supply(self) -> int:
        """The hard cap: the most NP that will ever exist."""
        return self.config.max_supply

    def get_circulating_supply(self) -> int:
        return self.snapshot().circulating_supply

    def get_burned_supply(self) -> int:
        return self.snapshot().total_burned

    def get_treasury_balance(self) -> int:
        """Read-only: the treasury only ever receives through the splitter."""
        return self.snapshot().treasury_balance


# ═══════════════════════════════════════════════════════════════════
#  Transaction Splitter
# ═══════════════════════════════════════════════════════════════════


class TransactionSplitter:
    """
    Single gate for every NP-denominated spend (repairs, oil changes,
    insurance premiums, marketplace purchases).
    """

    def __init__(
        self,
        config: EconomyConfig | None = None,
        ledger: SupplyLedger | None = None,
    ) -> None:
        self.config = config or EconomyConfig.from_settings()
        self.ledger = ledger or SupplyLedger(config=self.config)

    def preview_split(self, amount: int) -> SplitPreview:
        """
        Pure split of ``amount`` into burn / reward pool / treasury.

        burn and reward are floored percentages, each at least 1 NP while
        NP remains; treasury takes the remainder, so the three always sum
        to ``amount`` exactly.
        """
        amount = ensure_amount(amount)
        burn = min(amount, max(1, amount * self.config.burn_rate_percent // 100))
        reward = min(
            amount - burn,
            max(1, amount * self.config.reward_pool_rate_percent // 100),
        )
        return SplitPreview(burn=burn, reward=reward, treasury=amount - burn - reward)

    # Public name used by the game client.
    preview_transaction = preview_split

    def process_transaction(
        self,
        amount: int,
        wallet: str | None = None,
        description: str = "transaction",
    ) -> TransactionResult | None:
        """
        Apply the split to the ledger as one atomic unit.

        Returns:
            The split and the ledger totals after it, or ``None`` when the
            store failed (nothing was applied; the caller may retry).

        Raises:
            InvalidAmount: ``amount`` is not a positive integer.
            InvalidWallet: ``wallet`` is given but blank.
        """
        split = self.preview_split(amount)
        wallet = ensure_wallet(wallet) if wallet is not None else ""

        try:
            with transaction.atomic():
                self.ledger.apply_split(
                    burn=split.burn, reward=split.reward, treasury=split.treasury,
                )
                EconomyEvent.objects.create(
                    event_type=EconomyEventType.TRANSACTION,
                    amount=amount,
                    burn_amount=split.burn,
                    reward_amount=split.reward,
                    treasury_amount=split.treasury,
                    wallet=wallet,
                    description=description[:255],
                )
                state = EconomyState.objects.get(pk=EconomyState.SINGLETON_PK)
        except DatabaseError:
            logger.exception(
                "processTransaction failed for %s NP (%s, wallet=%s)",
                amount, description, wallet or "-",
            )
            return None

        logger.info(
            "Transaction %s: %s NP → burn %s / pool %s / treasury %s",
            description, amount, split.burn, split.reward, split.treasury,
        )
        return TransactionResult(
            burned=split.burn,
            to_reward_pool=split.reward,
            to_treasury=split.treasury,
            total_burned=state.total_burned,
            reward_pool=state.reward_pool_balance,
            treasury=state.treasury_balance,
        )


# ═══════════════════════════════════════════════════════════════════
#  Emission Controller
# ═══════════════════════════════════════════════════════════════════


class EmissionController:
    """
    Governs minting of new NP.

    effective daily limit::

        max(min_daily_limit, base_daily_limit × (1 − decay%)^weeks)
            + min(active_players_today × active_player_bonus, max_player_bonus_cap)

    where ``weeks`` is the number of whole weeks since
    ``emission_start_date``.
    """

    def __init__(
        self,
        config: EconomyConfig | None = None,
        ledger: SupplyLedger | None = None,
        clock: Clock = timezone.now,
    ) -> None:
        self.config = config or EconomyConfig.from_settings()
        self.clock = clock
        self.ledger = ledger or SupplyLedger(config=self.config, clock=clock)

    def reload_config(self, config: EconomyConfig | None = None) -> None:
        self.config = config or EconomyConfig.from_settings()
        self.ledger.config = self.config

    def elapsed_weeks(self, on: date | None = None) -> int:
        on = on or utc_today(self.clock)
        return max(0, (on - self.config.emission_start_date).days // 7)

    def effective_daily_limit(self, *, on: date | None = None, active_players: int | None = None) -> int:
        on = on or utc_today(self.clock)
        cfg = self.config
        decayed = cfg.base_daily_limit * (1 - cfg.decay_rate_percent / 100) ** self.elapsed_weeks(on)
        # round() first: 50000 * 0.98**2 is 48019.99999… in binary floating point
        limit = max(cfg.min_daily_limit, math.floor(round(decayed, 6)))

        if cfg.active_player_bonus > 0:
            if active_players is None:
                active_players = self.count_active_players(on)
            limit += min(active_players * cfg.active_player_bonus, cfg.max_player_bonus_cap)
        return limit

    def count_active_players(self, on: date) -> int:
        """Distinct wallets with at least one logged race on ``on`` (UTC)."""
        RaceLog = apps.get_model("racing", "RaceLog")
        return (
            RaceLog.objects
            .filter(raced_at__date=on)
            .values("wallet_address")
            .distinct()
            .count()
        )

    def emit_tokens(self, wallet: str, amount: int, reason: str = "race_reward") -> EmissionResult:
        """
        Mint up to ``amount`` NP for ``wallet``.

        ``emitted = min(amount, daily_remaining, max_supply − total_minted)``.
        When that is less than requested, ``reason`` says which cap bound
        it.  Store failures yield ``emitted=0`` with
        ``reason="store_unavailable"``; nothing is applied in that case.

        Raises:
            InvalidAmount: ``amount`` is not a positive integer.
            InvalidWallet: ``wallet`` is blank.
        """
        wallet = ensure_wallet(wallet)
        amount = ensure_amount(amount)
        limit: int | None = None

        try:
            with transaction.atomic():
                self.ledger.reset_daily_if_stale()
                state = lock_for_update(EconomyState, EconomyState.SINGLETON_PK)
                limit = self.effective_daily_limit()

                daily_remaining = max(0, limit - state.daily_emitted)
                supply_remaining = max(0, state.max_supply - state.total_minted)
                mintable = min(amount, daily_remaining, supply_remaining)

                if mintable == 0:
                    cap_reason = (
                        EmissionReason.HARD_CAP_REACHED
                        if supply_remaining == 0
                        else EmissionReason.DAILY_CAP_REACHED
                    )
                    logger.warning(
                        "Emission of %s NP to %s refused: %s", amount, wallet, cap_reason,
                    )
                    return EmissionResult(
                        emitted=0,
                        daily_remaining=daily_remaining,
                        effective_daily_limit=limit,
                        reason=cap_reason,
                    )

                self.ledger.apply_mint(mintable, daily_limit=limit)
                EconomyEvent.objects.create(
                    event_type=EconomyEventType.MINT,
                    amount=mintable,
                    wallet=wallet,
                    description=reason[:255],
                    metadata={"requested": amount, "effective_daily_limit": limit},
                )
        except CapExceeded as exc:
            logger.warning("Emission of %s NP to %s lost a cap race: %s", amount, wallet, exc)
            return EmissionResult(
                emitted=0,
                effective_daily_limit=limit,
                reason=(
                    EmissionReason.HARD_CAP_REACHED
                    if exc.cap == "hard_cap"
                    else EmissionReason.DAILY_CAP_REACHED
                ),
            )
        except DatabaseError:
            logger.exception("Emission of %s NP to %s failed", amount, wallet)
            return EmissionResult(emitted=0, reason=EmissionReason.STORE_UNAVAILABLE)

        shortfall_reason = None
        if mintable < amount:
            shortfall_reason = (
                EmissionReason.HARD_CAP_REACHED
                if supply_remaining < daily_remaining
                else EmissionReason.DAILY_CAP_REACHED
            )
            logger.warning(
                "Emission to %s degraded: requested %s, emitted %s (%s)",
                wallet, amount, mintable, shortfall_reason,
            )
        else:
            logger.info("Emitted %s NP to %s (%s)", mintable, wallet, reason)

        return EmissionResult(
            emitted=mintable,
            daily_remaining=daily_remaining - mintable,
            effective_daily_limit=limit,
            reason=shortfall_reason,
        )


# ═══════════════════════════════════════════════════════════════════
#  Reward Pool
# ═══════════════════════════════════════════════════════════════════


class RewardPoolService:
    """Pays players out of the reward pool; never more than its balance."""

    def __init__(self, ledger: SupplyLedger | None = None) -> None:
        self.ledger = ledger or SupplyLedger()

    def get_reward_pool_balance(self) -> int:
        return self.ledger.snapshot().reward_pool_balance

    def distribute_from_pool(self, wallet: str, amount: int, reason: str = "reward") -> bool:
        """
        Move ``amount`` NP from the pool to ``wallet``.

        Returns:
            ``True`` on success, ``False`` when the pool balance is
            insufficient or the store failed.
        """
        wallet = ensure_wallet(wallet)
        amount = ensure_amount(amount)
        try:
            with transaction.atomic():
                if not self.ledger.release_from_pool(amount):
                    logger.warning(
                        "Reward pool too small to pay %s NP to %s", amount, wallet,
                    )
                    return False
                EconomyEvent.objects.create(
                    event_type=EconomyEventType.REWARD_DISTRIBUTE,
                    amount=amount,
                    reward_amount=amount,
                    wallet=wallet,
                    description=reason[:255],
                )
        except DatabaseError:
            logger.exception("Reward pool payout of %s NP to %s failed", amount, wallet)
            return False

        logger.info("Distributed %s NP from reward pool to %s (%s)", amount, wallet, reason)
        return True


# ═══════════════════════════════════════════════════════════════════
#  Economy Report
# ═══════════════════════════════════════════════════════════════════


class EconomyReportService:
    """Supply report with a simple sustainability projection."""

    def __init__(
        self,
        config: EconomyConfig | None = None,
        emission: EmissionController | None = None,
        clock: Clock = timezone.now,
    ) -> None:
        self.config = config or EconomyConfig.from_settings()
        self.clock = clock
        self.emission = emission or EmissionController(config=self.config, clock=clock)

    def generate_economy_report(self) -> EconomyReport:
        snapshot = self.emission.ledger.snapshot()
        state = EconomyState.objects.get(pk=EconomyState.SINGLETON_PK)
        today = utc_today(self.clock)

        days_active = max(1, (today - state.created_at.astimezone(dt_timezone.utc).date()).days + 1)
        limit = self.emission.effective_daily_limit(on=today)

        burn_rate = (
            round(snapshot.total_burned / snapshot.total_minted * 100, 2)
            if snapshot.total_minted
            else 0.0
        )
        projected = snapshot.remaining_supply // limit if limit > 0 else 0

        return EconomyReport(
            max_supply=snapshot.max_supply,
            total_minted=snapshot.total_minted,
            total_burned=snapshot.total_burned,
            circulating_supply=snapshot.circulating_supply,
            reward_pool_balance=snapshot.reward_pool_balance,
            treasury_balance=snapshot.treasury_balance,
            burn_rate_percent=burn_rate,
            avg_daily_burn=round(snapshot.total_burned / days_active, 2),
            days_active=days_active,
            daily_emission_limit=limit,
            daily_emitted_today=snapshot.daily_emitted,
            projected_days_to_depletion=projected,
            sustainability_score=self.sustainability_score(snapshot.total_minted, burn_rate),
        )

    @staticmethod
    def sustainability_score(total_minted: int, burn_rate_percent: float) -> str:
        from core.constants import HIGH_DEFLATION_BURN_PERCENT, MODERATE_DEFLATION_BURN_PERCENT

        if total_minted == 0:
            return SustainabilityScore.NO_DATA
        if burn_rate_percent >= HIGH_DEFLATION_BURN_PERCENT:
            return SustainabilityScore.HIGH_DEFLATION
        if burn_rate_percent >= MODERATE_DEFLATION_BURN_PERCENT:
            return SustainabilityScore.MODERATE_DEFLATION
        return SustainabilityScore.LOW_DEFLATION
