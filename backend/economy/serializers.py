"""
Economy app serializers.

Request serializers validate the shape of incoming payloads only; amount
rules beyond "positive integer" (caps, circulation) are enforced in
``services.py``.  Response serializers read the frozen dataclasses the
service layer returns.

Structure
---------
1. Request serializers (transaction, emission, pool distribution)
2. Response serializers (snapshot, split, results, report)
3. Audit trail (``EconomyEvent``)
"""

from __future__ import annotations

from rest_framework import serializers

from core.domain.validation import MAX_WALLET_LENGTH

from .models import EconomyEvent


# ═══════════════════════════════════════════════════════════════════
#  1. Request Serializers
# ═══════════════════════════════════════════════════════════════════


class TransactionPreviewSerializer(serializers.Serializer):
    """Payload for ``POST /api/economy/transactions/preview/``."""

    amount = serializers.IntegerField(min_value=1, help_text="NP amount to split.")


class TransactionCreateSerializer(serializers.Serializer):
    """
    Payload for ``POST /api/economy/transactions/``.

    Example::

        {"amount": 250, "wallet": "0xabc…", "description": "repair"}
    """

    amount = serializers.IntegerField(min_value=1)
    wallet = serializers.CharField(
        required=False,
        max_length=MAX_WALLET_LENGTH,
        help_text="Wallet that paid. Optional for system-initiated spends.",
    )
    description = serializers.CharField(
        required=False,
        max_length=255,
        default="transaction",
        help_text="What the NP was spent on (repair, oil_change, insurance…).",
    )


class EmissionCreateSerializer(serializers.Serializer):
    """Payload for ``POST /api/economy/emissions/`` (staff only)."""

    wallet = serializers.CharField(max_length=MAX_WALLET_LENGTH)
    amount = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, max_length=255, default="manual_emission")


class PoolDistributionSerializer(serializers.Serializer):
    """Payload for ``POST /api/economy/reward-pool/distribute/`` (staff only)."""

    wallet = serializers.CharField(max_length=MAX_WALLET_LENGTH)
    amount = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, max_length=255, default="reward")


# ═══════════════════════════════════════════════════════════════════
#  2. Response Serializers
# ═══════════════════════════════════════════════════════════════════


class EconomySnapshotSerializer(serializers.Serializer):
    """Serializes ``economy.services.EconomySnapshot``."""

    max_supply = serializers.IntegerField()
    total_minted = serializers.IntegerField()
    total_burned = serializers.IntegerField()
    circulating_supply = serializers.IntegerField()
    reward_pool_balance = serializers.IntegerField()
    treasury_balance = serializers.IntegerField()
    daily_emitted = serializers.IntegerField()
    last_emission_reset = serializers.DateField()


class SplitPreviewSerializer(serializers.Serializer):
    burn = serializers.IntegerField()
    reward = serializers.IntegerField()
    treasury = serializers.IntegerField()


class TransactionResultSerializer(serializers.Serializer):
    burned = serializers.IntegerField()
    to_reward_pool = serializers.IntegerField()
    to_treasury = serializers.IntegerField()
    total_burned = serializers.IntegerField()
    reward_pool = serializers.IntegerField()
    treasury = serializers.IntegerField()


class EmissionResultSerializer(serializers.Serializer):
    """
    Serializes ``economy.services.EmissionResult``.

    ``reason`` is ``null`` when the full amount was minted.
    """

    emitted = serializers.IntegerField()
    daily_remaining = serializers.IntegerField(allow_null=True)
    effective_daily_limit = serializers.IntegerField(allow_null=True)
    reason = serializers.CharField(allow_null=True)


class PoolDistributionResultSerializer(serializers.Serializer):
    distributed = serializers.BooleanField()
    reward_pool_balance = serializers.IntegerField()


class EconomyReportSerializer(serializers.Serializer):
    max_supply = serializers.IntegerField()
    total_minted = serializers.IntegerField()
    total_burned = serializers.IntegerField()
    circulating_supply = serializers.IntegerField()
    reward_pool_balance = serializers.IntegerField()
    treasury_balance = serializers.IntegerField()
    burn_rate_percent = serializers.FloatField()
    avg_daily_burn = serializers.FloatField()
    days_active = serializers.IntegerField()
    daily_emission_limit = serializers.IntegerField()
    daily_emitted_today = serializers.IntegerField()
    projected_days_to_depletion = serializers.IntegerField(
        help_text="Days until the hard cap is reached at today's emission limit.",
    )
    sustainability_score = serializers.CharField()


# ═══════════════════════════════════════════════════════════════════
#  3. Audit Trail
# ═══════════════════════════════════════════════════════════════════


class EconomyEventSerializer(serializers.ModelSerializer):
    event_type_display = serializers.CharField(
        source="get_event_type_display",
        read_only=True,
    )

    class Meta:
        model = EconomyEvent
        fields = [
            "id",
            "event_type",
            "event_type_display",
            "amount",
            "burn_amount",
            "reward_amount",
            "treasury_amount",
            "wallet",
            "description",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields
