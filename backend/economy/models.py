"""
Economy app models.

Holds the authoritative NP supply ledger and its audit trail.

* ``EconomyState`` — single row (pk=1): minted, burned, reward pool,
  treasury and today's emission.  Only the services in
  ``economy.services`` mutate it, always through conditional ``UPDATE``
  statements so concurrent callers never lose an update.
* ``EconomyEvent`` — append-only record of every burn, mint, split and
  pool distribution.

Ledger invariant (wallet balances are external)::

    total_minted - total_burned
        = reward_pool_balance + treasury_balance + circulating_outside_ledger
"""

from datetime import date, timezone as dt_timezone

from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from core.constants import MAX_SUPPLY
from core.models import TimeStampedModel


def utc_date() -> date:
    """Today in UTC, whatever ``TIME_ZONE`` is set to."""
    return timezone.now().astimezone(dt_timezone.utc).date()


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class EconomyEventType(models.TextChoices):
    """Kind of ledger movement recorded in ``EconomyEvent``."""

    BURN = "burn", "Burn"
    MINT = "mint", "Mint"
    TRANSACTION = "transaction", "Transaction"
    REWARD_DISTRIBUTE = "reward_distribute", "Reward Distribution"
    TREASURY_TRANSFER = "treasury_transfer", "Treasury Transfer"


class SustainabilityScore(models.TextChoices):
    """Deflation grade reported by ``EconomyReportService``."""

    HIGH_DEFLATION = "HIGH_DEFLATION", "High Deflation"
    MODERATE_DEFLATION = "MODERATE_DEFLATION", "Moderate Deflation"
    LOW_DEFLATION = "LOW_DEFLATION", "Low Deflation"
    NO_DATA = "NO_DATA", "No Data"


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class EconomyState(TimeStampedModel):
    """
    Singleton supply ledger.

    ``max_supply`` is fixed when the row is created; the database refuses
    any write that would leave ``total_minted`` above it.  Spends are not
    bounded by ``total_minted``: wallets may hold NP that predates the
    ledger, so ``circulating_outside_ledger`` can be negative.
    """

    SINGLETON_PK = 1

    max_supply = models.PositiveBigIntegerField(
        default=MAX_SUPPLY,
        editable=False,
        verbose_name="Max Supply",
    )
    total_minted = models.PositiveBigIntegerField(default=0, verbose_name="Total Minted")
    total_burned = models.PositiveBigIntegerField(default=0, verbose_name="Total Burned")
    reward_pool_balance = models.PositiveBigIntegerField(
        default=0,
        verbose_name="Reward Pool Balance",
    )
    treasury_balance = models.PositiveBigIntegerField(
        default=0,
        verbose_name="Treasury Balance",
    )
    daily_emitted = models.PositiveBigIntegerField(
        default=0,
        verbose_name="Emitted Today",
    )
    last_emission_reset = models.DateField(
        default=utc_date,
        verbose_name="Last Emission Reset (UTC date)",
    )

    class Meta:
        verbose_name = "Economy State"
        verbose_name_plural = "Economy State"
        constraints = [
            models.CheckConstraint(
                condition=Q(total_minted__lte=F("max_supply")),
                name="economy_state_minted_within_hard_cap",
            ),
        ]

    def __str__(self):
        return (
            f"Economy: minted={self.total_minted} burned={self.total_burned} "
            f"pool={self.reward_pool_balance} treasury={self.treasury_balance}"
        )

    @classmethod
    def load(cls, *, max_supply: int = MAX_SUPPLY) -> "EconomyState":
        """Return the singleton row, creating it on first use."""
        state, _ = cls.objects.get_or_create(
            pk=cls.SINGLETON_PK,
            defaults={"max_supply": max_supply},
        )
        return state

    @property
    def circulating_supply(self) -> int:
        return self.total_minted - self.total_burned

    @property
    def circulating_outside_ledger(self) -> int:
        return (
            self.total_minted
            - self.total_burned
            - self.reward_pool_balance
            - self.treasury_balance
        )


class EconomyEvent(models.Model):
    """
    Append-only audit record of one ledger movement.

    For ``transaction`` events the three split amounts are filled in; for
    ``mint`` and ``reward_distribute`` only ``amount`` is relevant.
    """

    event_type = models.CharField(
        max_length=32,
        choices=EconomyEventType.choices,
        verbose_name="Event Type",
    )
    amount = models.PositiveBigIntegerField(verbose_name="Amount")
    burn_amount = models.PositiveBigIntegerField(default=0, verbose_name="Burned")
    reward_amount = models.PositiveBigIntegerField(default=0, verbose_name="To Reward Pool")
    treasury_amount = models.PositiveBigIntegerField(default=0, verbose_name="To Treasury")
    wallet = models.CharField(
        max_length=128,
        blank=True,
        default="",
        db_index=True,
        verbose_name="Wallet",
    )
    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Description",
    )
    metadata = models.JSONField(default=dict, blank=True, verbose_name="Metadata")
    created_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        verbose_name="Created At",
    )

    class Meta:
        verbose_name = "Economy Event"
        verbose_name_plural = "Economy Events"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event_type", "created_at"]),
        ]

    def __str__(self):
        return f"[{self.event_type}] {self.amount} NP ({self.wallet or 'system'})"
