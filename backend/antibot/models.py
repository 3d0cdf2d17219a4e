"""
Anti-bot app models.

* ``RiskLevel`` / ``PenaltyTier`` — closed enumerations; the allowed tier
  transitions live in ``antibot.classifier``.
* ``BehaviorProfile`` — one row per wallet holding the latest behavior
  analysis and the persisted penalty state (``flagged``, ``blocked_until``).
  Dimension scores are recomputed from the race log on every assessment;
  the penalty state persists until policy or an administrator clears it.
"""

from __future__ import annotations

from datetime import datetime

from django.db import models

from core.constants import RISK_COOLDOWN_SECONDS
from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class RiskLevel(models.TextChoices):
    """Automation likelihood, ordered from least to most risky."""

    LOW = "LOW", "Low"
    MEDIUM = "MEDIUM", "Medium"
    HIGH = "HIGH", "High"
    CRITICAL = "CRITICAL", "Critical"


class PenaltyTier(models.TextChoices):
    NONE = "none", "None"
    WARNING = "warning", "Warning"
    SUSPECT = "suspect", "Suspect"
    FLAGGED = "flagged", "Flagged"
    BLOCKED = "blocked", "Blocked"


# Ordered from least to most risky; every risk table is keyed in this order.
RISK_LEVEL_ORDER: tuple[str, ...] = tuple(RiskLevel.values)


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class BehaviorProfile(TimeStampedModel):
    """Latest behavior analysis and penalty state of one wallet."""

    wallet_address = models.CharField(
        max_length=128,
        unique=True,
        verbose_name="Wallet Address",
    )
    behavior_score = models.PositiveSmallIntegerField(
        default=100,
        verbose_name="Behavior Score",
        help_text="Composite of the four dimensions; 100 = human-like.",
    )
    interval_score = models.PositiveSmallIntegerField(default=100)
    variability_score = models.PositiveSmallIntegerField(default=100)
    winrate_score = models.PositiveSmallIntegerField(default=100)
    pattern_score = models.PositiveSmallIntegerField(default=100)
    risk_level = models.CharField(
        max_length=10,
        choices=RiskLevel.choices,
        default=RiskLevel.LOW,
        db_index=True,
        verbose_name="Risk Level",
    )
    penalty_tier = models.CharField(
        max_length=10,
        choices=PenaltyTier.choices,
        default=PenaltyTier.NONE,
        verbose_name="Penalty Tier",
    )
    reward_multiplier = models.FloatField(default=1.0, verbose_name="Reward Multiplier")
    forced_cooldown_seconds = models.PositiveIntegerField(
        default=RISK_COOLDOWN_SECONDS["LOW"],
        verbose_name="Forced Cooldown (s)",
    )
    blocked_until = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Blocked Until",
    )
    flagged = models.BooleanField(default=False, db_index=True, verbose_name="Flagged")
    flagged_at = models.DateTimeField(null=True, blank=True, verbose_name="Flagged At")
    last_race_at = models.DateTimeField(null=True, blank=True, verbose_name="Last Race At")
    last_calculated_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Last Calculated At",
    )

    class Meta:
        verbose_name = "Behavior Profile"
        verbose_name_plural = "Behavior Profiles"
        ordering = ["behavior_score", "wallet_address"]

    def __str__(self):
        return f"{self.wallet_address} [{self.risk_level}/{self.penalty_tier}] score={self.behavior_score}"

    def is_blocked(self, now: datetime) -> bool:
        return self.blocked_until is not None and self.blocked_until > now
