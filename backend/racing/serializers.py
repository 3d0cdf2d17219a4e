"""
Racing app serializers.

Structure
---------
1. Request serializers (quote, prepare, settle)
2. Response serializers (quote, preparation, settlement)
"""

from __future__ import annotations

from rest_framework import serializers

from antibot.serializers import RaceGateSerializer, RiskAssessmentSerializer
from core.domain.validation import MAX_WALLET_LENGTH
from economy.serializers import EmissionResultSerializer

from .services import MAX_RACE_ID_LENGTH


# ═══════════════════════════════════════════════════════════════════
#  1. Request Serializers
# ═══════════════════════════════════════════════════════════════════


class VehicleAttributesSerializer(serializers.Serializer):
    """
    Car attributes.  Values above the stat cap are accepted and capped by
    the calculator.
    """

    speed = serializers.FloatField(min_value=0)
    acceleration = serializers.FloatField(min_value=0)
    handling = serializers.FloatField(min_value=0)
    durability = serializers.FloatField(min_value=0)


class RewardQuoteRequestSerializer(serializers.Serializer):
    """
    Payload for ``POST /api/racing/quote/``.

    Example::

        {
            "attributes": {"speed": 80, "acceleration": 70, "handling": 60, "durability": 50},
            "base_reward": 100,
            "recent_wins": 9,
            "recent_races": 10
        }
    """

    attributes = VehicleAttributesSerializer()
    base_reward = serializers.IntegerField(min_value=0)
    recent_wins = serializers.IntegerField(min_value=0, required=False, default=0)
    recent_races = serializers.IntegerField(min_value=0, required=False, default=0)

    def validate(self, attrs):
        if attrs["recent_wins"] > attrs["recent_races"]:
            raise serializers.ValidationError(
                {"recent_wins": "Cannot exceed recent_races."}
            )
        return attrs


class RacePrepareSerializer(serializers.Serializer):
    """Payload for ``POST /api/racing/prepare/``."""

    wallet = serializers.CharField(max_length=MAX_WALLET_LENGTH)
    attributes = VehicleAttributesSerializer()
    player_level = serializers.IntegerField(min_value=1, required=False, default=1)


class RaceSettleSerializer(serializers.Serializer):
    """
    Payload for ``POST /api/racing/settle/``.

    ``race_id`` is issued by the game server and makes the call
    idempotent: repeating it never credits twice.
    """

    race_id = serializers.CharField(max_length=MAX_RACE_ID_LENGTH)
    wallet = serializers.CharField(max_length=MAX_WALLET_LENGTH)
    car_id = serializers.CharField(max_length=64, required=False, default="", allow_blank=True)
    attributes = VehicleAttributesSerializer()
    won = serializers.BooleanField()
    duration_ms = serializers.IntegerField(min_value=1)
    base_reward = serializers.IntegerField(min_value=0)
    xp_earned = serializers.IntegerField(min_value=0, required=False, default=0)
    source = serializers.CharField(max_length=32, required=False, default="race")


# ═══════════════════════════════════════════════════════════════════
#  2. Response Serializers
# ═══════════════════════════════════════════════════════════════════


class AntiFarmAdjustmentSerializer(serializers.Serializer):
    reward_multiplier = serializers.FloatField()
    difficulty_boost = serializers.FloatField()


class OpponentStatsSerializer(serializers.Serializer):
    speed = serializers.IntegerField()
    acceleration = serializers.IntegerField()
    handling = serializers.IntegerField()
    health = serializers.IntegerField()
    level = serializers.IntegerField()


class CollisionResultSerializer(serializers.Serializer):
    occurred = serializers.BooleanField()
    engine_damage = serializers.IntegerField()
    durability_damage = serializers.IntegerField()


class RewardQuoteSerializer(serializers.Serializer):
    power_score = serializers.FloatField()
    difficulty = serializers.FloatField()
    speed_multiplier = serializers.FloatField()
    acceleration_multiplier = serializers.FloatField()
    handling_efficiency_bonus = serializers.FloatField()
    handling_variance = serializers.FloatField()
    durability_damage_reduction = serializers.FloatField()
    durability_collision_reduction = serializers.FloatField()
    curve_reward = serializers.IntegerField()
    anti_farm = AntiFarmAdjustmentSerializer()
    offered_reward = serializers.IntegerField(help_text="Reward handed to risk assessment.")


class RacePreparationSerializer(serializers.Serializer):
    allowed = serializers.BooleanField()
    gate = RaceGateSerializer()
    power_score = serializers.FloatField(allow_null=True)
    difficulty = serializers.FloatField(allow_null=True)
    anti_farm = AntiFarmAdjustmentSerializer(allow_null=True)
    opponent = OpponentStatsSerializer(allow_null=True)


class RaceSettlementSerializer(serializers.Serializer):
    race_id = serializers.CharField()
    wallet = serializers.CharField()
    won = serializers.BooleanField()
    duplicate = serializers.BooleanField()
    power_score = serializers.FloatField(allow_null=True)
    curve_reward = serializers.IntegerField(allow_null=True)
    anti_farm = AntiFarmAdjustmentSerializer(allow_null=True)
    offered_reward = serializers.IntegerField()
    assessment = RiskAssessmentSerializer(allow_null=True)
    emission = EmissionResultSerializer(allow_null=True)
    np_earned = serializers.IntegerField()
    xp_earned = serializers.IntegerField()
    collision = CollisionResultSerializer(allow_null=True)

