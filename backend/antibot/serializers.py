"""
Anti-bot app serializers.

Structure
---------
1. Request serializers (assessment, gate query)
2. Response serializers (assessment, gate, security report)
3. ``BehaviorProfile`` detail
"""

from __future__ import annotations

from rest_framework import serializers

from core.domain.validation import MAX_WALLET_LENGTH

from .models import BehaviorProfile


# ═══════════════════════════════════════════════════════════════════
#  1. Request Serializers
# ═══════════════════════════════════════════════════════════════════


class RiskAssessmentRequestSerializer(serializers.Serializer):
    """
    Payload for ``POST /api/antibot/assess/``.

    Example::

        {"wallet": "0xabc…", "base_reward": 60, "source": "race_win"}
    """

    wallet = serializers.CharField(max_length=MAX_WALLET_LENGTH)
    base_reward = serializers.IntegerField(min_value=0)
    source = serializers.CharField(required=False, max_length=32, default="race")


class CanRaceQuerySerializer(serializers.Serializer):
    """Query string of ``GET /api/antibot/can-race/``."""

    wallet = serializers.CharField(max_length=MAX_WALLET_LENGTH)


# ═══════════════════════════════════════════════════════════════════
#  2. Response Serializers
# ═══════════════════════════════════════════════════════════════════


class RiskAssessmentSerializer(serializers.Serializer):
    risk_level = serializers.CharField()
    reward_multiplier = serializers.FloatField()
    blocked = serializers.BooleanField()
    reason = serializers.CharField()
    adjusted_reward = serializers.IntegerField()
    original_reward = serializers.IntegerField()
    penalty_tier = serializers.CharField()
    recommendations = serializers.ListField(child=serializers.CharField())
    behavior_score = serializers.IntegerField(allow_null=True)
    daily_earnings = serializers.IntegerField()
    daily_cap = serializers.IntegerField()


class RaceGateSerializer(serializers.Serializer):
    allowed = serializers.BooleanField()
    reason = serializers.CharField()
    penalty_tier = serializers.CharField()
    wait_seconds = serializers.IntegerField(allow_null=True)


class SuspiciousProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = BehaviorProfile
        fields = ["wallet_address", "behavior_score", "risk_level", "penalty_tier", "flagged"]
        read_only_fields = fields


class RecentFlagSerializer(serializers.Serializer):
    wallet = serializers.CharField()
    score = serializers.IntegerField()
    tier = serializers.CharField()
    flagged_at = serializers.DateTimeField(allow_null=True)


class SecurityReportSerializer(serializers.Serializer):
    generated_at = serializers.DateTimeField()
    total_players = serializers.IntegerField()
    suspicious_players = serializers.IntegerField()
    flagged_players = serializers.IntegerField()
    blocked_players = serializers.IntegerField()
    total_rewards_blocked = serializers.IntegerField(help_text="NP withheld entirely, last 7 days.")
    total_rewards_reduced = serializers.IntegerField(help_text="NP cut from partial payouts, last 7 days.")
    economic_impact_avoided = serializers.IntegerField()
    player_breakdown = serializers.DictField(child=serializers.IntegerField())
    top_suspicious = SuspiciousProfileSerializer(many=True)
    recent_flags = RecentFlagSerializer(many=True)


# ═══════════════════════════════════════════════════════════════════
#  3. Profile Detail
# ═══════════════════════════════════════════════════════════════════


class BehaviorProfileSerializer(serializers.ModelSerializer):
    risk_level_display = serializers.CharField(source="get_risk_level_display", read_only=True)
    penalty_tier_display = serializers.CharField(source="get_penalty_tier_display", read_only=True)

    class Meta:
        model = BehaviorProfile
        fields = [
            "wallet_address",
            "behavior_score",
            "interval_score",
            "variability_score",
            "winrate_score",
            "pattern_score",
            "risk_level",
            "risk_level_display",
            "penalty_tier",
            "penalty_tier_display",
            "reward_multiplier",
            "forced_cooldown_seconds",
            "blocked_until",
            "flagged",
            "flagged_at",
            "last_race_at",
            "last_calculated_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
