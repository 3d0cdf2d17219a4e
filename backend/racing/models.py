"""
Racing app models.

``RaceLog`` is the append-only record of every settled race.  It is the
input of the behavior analysis (``antibot``) and of the anti-farm win
rate, and its unique ``race_id`` is the at-most-once settlement key: a
race that already has a row is never credited again.
"""

from django.db import models
from django.utils import timezone


class RaceLog(models.Model):
    race_id = models.CharField(
        max_length=64,
        unique=True,
        verbose_name="Race ID",
        help_text="Issued by the game server; one settlement per race.",
    )
    wallet_address = models.CharField(max_length=128, verbose_name="Wallet Address")
    car_id = models.CharField(max_length=64, blank=True, default="", verbose_name="Car ID")
    source = models.CharField(
        max_length=32,
        default="race",
        verbose_name="Reward Source",
        help_text="e.g. race_win, race_loss, tournament.",
    )
    won = models.BooleanField(default=False, verbose_name="Won")
    base_reward = models.PositiveIntegerField(
        default=0,
        verbose_name="Base Reward",
        help_text="NP offered to risk assessment (after curve and anti-farm).",
    )
    np_earned = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name="NP Earned",
        help_text="Empty while the race is being settled.",
    )
    xp_earned = models.PositiveIntegerField(default=0, verbose_name="XP Earned")
    duration_ms = models.PositiveIntegerField(verbose_name="Duration (ms)")
    raced_at = models.DateTimeField(default=timezone.now, verbose_name="Raced At")

    class Meta:
        verbose_name = "Race Log"
        verbose_name_plural = "Race Logs"
        ordering = ["-raced_at"]
        indexes = [
            models.Index(fields=["wallet_address", "raced_at"]),
        ]

    def __str__(self):
        outcome = "win" if self.won else "loss"
        return f"{self.race_id} {self.wallet_address} {outcome} +{self.np_earned or 0} NP"
