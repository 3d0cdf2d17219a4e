"""
Racing app views — **Thin Views**.

Permission Strategy
-------------------
* Reward quote: public, pure calculation.
* Race preparation and settlement: authenticated game servers.

Settlement returns ``201`` for a newly credited race and ``200`` with
``duplicate=true`` when the ``race_id`` was already settled.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .balancing import BalancingConfig, VehicleAttributes, quote_reward
from .serializers import (
    RacePreparationSerializer,
    RacePrepareSerializer,
    RaceSettlementSerializer,
    RaceSettleSerializer,
    RewardQuoteRequestSerializer,
    RewardQuoteSerializer,
)
from .services import RacePreparationService, RaceSettlementService


class RewardQuoteView(APIView):
    """**POST /api/racing/quote/** — PowerScore, difficulty and reward curve for a car."""

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Quote a race reward",
        description=(
            "Pure calculation: PowerScore, opponent difficulty, attribute mechanics, "
            "curve reward and anti-farm cut. Risk and emission caps are not applied."
        ),
        request=RewardQuoteRequestSerializer,
        responses={
            200: OpenApiResponse(response=RewardQuoteSerializer, description="Quote."),
            400: OpenApiResponse(description="Invalid attributes or race history."),
        },
        tags=["Racing"],
    )
    def post(self, request: Request) -> Response:
        serializer = RewardQuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        quote = quote_reward(
            VehicleAttributes(**data["attributes"]),
            data["base_reward"],
            data["recent_wins"],
            data["recent_races"],
            BalancingConfig.from_settings(),
        )
        return Response(RewardQuoteSerializer(quote).data, status=status.HTTP_200_OK)


class RacePrepareView(APIView):
    """**POST /api/racing/prepare/** — pre-race gate and opponent."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Prepare a race",
        description="`allowed=false` carries the gate reason and wait time; no opponent is drawn.",
        request=RacePrepareSerializer,
        responses={200: OpenApiResponse(response=RacePreparationSerializer, description="Preparation.")},
        tags=["Racing"],
    )
    def post(self, request: Request) -> Response:
        serializer = RacePrepareSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        preparation = RacePreparationService().prepare_race(
            data["wallet"],
            VehicleAttributes(**data["attributes"]),
            data["player_level"],
        )
        return Response(RacePreparationSerializer(preparation).data, status=status.HTTP_200_OK)


class RaceSettleView(APIView):
    """**POST /api/racing/settle/** — credit a finished race (idempotent per race_id)."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Settle a race",
        request=RaceSettleSerializer,
        responses={
            201: OpenApiResponse(response=RaceSettlementSerializer, description="Race credited."),
            200: OpenApiResponse(response=RaceSettlementSerializer, description="Already settled; nothing credited."),
            400: OpenApiResponse(description="Invalid payload."),
            503: OpenApiResponse(description="Store unavailable; nothing recorded, retry."),
        },
        tags=["Racing"],
    )
    def post(self, request: Request) -> Response:
        serializer = RaceSettleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        settlement = RaceSettlementService().settle_race(
            race_id=data["race_id"],
            wallet=data["wallet"],
            attributes=VehicleAttributes(**data["attributes"]),
            won=data["won"],
            duration_ms=data["duration_ms"],
            base_reward=data["base_reward"],
            xp_earned=data["xp_earned"],
            source=data["source"],
            car_id=data["car_id"],
        )
        return Response(
            RaceSettlementSerializer(settlement).data,
            status=status.HTTP_200_OK if settlement.duplicate else status.HTTP_201_CREATED,
        )
