"""
Core app serializers.

**Response-only** serializers for the system constants endpoint.  They
work exclusively with plain Python dicts produced by the service layer.
"""

from __future__ import annotations

from rest_framework import serializers


class ChoiceItemSerializer(serializers.Serializer):
    """
    A single key-label pair representing one choice/enum option.

    Example::

        {"value": "LOW", "label": "Low"}
    """

    value = serializers.CharField(
        help_text="Machine-readable value to send in API requests.",
    )
    label = serializers.CharField(
        help_text="Human-readable display label for the UI.",
    )


class EconomyRatesSerializer(serializers.Serializer):
    """Supply cap, split percentages and emission schedule."""

    max_supply = serializers.IntegerField()
    burn_rate_percent = serializers.IntegerField()
    reward_pool_rate_percent = serializers.IntegerField()
    treasury_rate_percent = serializers.IntegerField()
    base_daily_limit = serializers.IntegerField()
    min_daily_limit = serializers.IntegerField()
    decay_rate_percent = serializers.FloatField()


class RiskPolicyItemSerializer(serializers.Serializer):
    """
    One row of the risk policy table.

    Example::

        {"risk_level": "HIGH", "min_score": 30, "reward_multiplier": 0.25,
         "daily_cap": 200, "cooldown_seconds": 600}
    """

    risk_level = serializers.CharField()
    min_score = serializers.IntegerField(
        help_text="Lowest behavior score classified at this level.",
    )
    reward_multiplier = serializers.FloatField()
    daily_cap = serializers.IntegerField(help_text="Max NP per wallet per UTC day.")
    cooldown_seconds = serializers.IntegerField()


class SystemConstantsSerializer(serializers.Serializer):
    """
    Top-level response serializer for ``GET /api/core/constants/``.

    Response shape::

        {
            "risk_levels": [{"value": "LOW", "label": "Low"}, ...],
            "penalty_tiers": [...],
            "economy_event_types": [...],
            "sustainability_scores": [...],
            "economy": {"max_supply": 100000000, ...},
            "risk_policy": [{"risk_level": "LOW", ...}, ...]
        }
    """

    risk_levels = ChoiceItemSerializer(many=True)
    penalty_tiers = ChoiceItemSerializer(many=True)
    economy_event_types = ChoiceItemSerializer(many=True)
    sustainability_scores = ChoiceItemSerializer(many=True)
    economy = EconomyRatesSerializer()
    risk_policy = RiskPolicyItemSerializer(many=True)
