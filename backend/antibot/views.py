"""
Anti-bot app views — **Thin Views**.

Validate input, delegate to ``antibot.services``, serialize the returned
dataclass.  ``NotFound`` / ``InvalidWallet`` / ``StoreUnavailable`` are
mapped to 404 / 400 / 503 by ``core.domain.exception_handler``.

Permission Strategy
-------------------
* Assessment and the pre-race gate: authenticated game servers.
* Profile detail, clearing and the security report: staff only.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    BehaviorProfileSerializer,
    CanRaceQuerySerializer,
    RaceGateSerializer,
    RiskAssessmentRequestSerializer,
    RiskAssessmentSerializer,
    SecurityReportSerializer,
)
from .services import RiskAssessmentService, SecurityReportService

logger = logging.getLogger(__name__)


class RiskAssessmentView(APIView):
    """**POST /api/antibot/assess/** — adjust a reward for the wallet's risk."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Assess reward risk",
        description=(
            "Recomputes the wallet's behavior profile and returns the reward it may "
            "receive. A blocked or capped wallet is a normal 200 with `adjusted_reward=0`."
        ),
        request=RiskAssessmentRequestSerializer,
        responses={
            200: OpenApiResponse(response=RiskAssessmentSerializer, description="Assessment."),
            400: OpenApiResponse(description="Invalid wallet or base reward."),
            503: OpenApiResponse(description="Profile store unavailable; retry."),
        },
        tags=["Anti-bot"],
    )
    def post(self, request: Request) -> Response:
        serializer = RiskAssessmentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        assessment = RiskAssessmentService().assess_risk(
            data["wallet"], data["base_reward"], data["source"],
        )
        return Response(RiskAssessmentSerializer(assessment).data, status=status.HTTP_200_OK)


class CanRaceView(APIView):
    """**GET /api/antibot/can-race/?wallet=** — pre-race gate."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Pre-race gate",
        parameters=[
            OpenApiParameter(name="wallet", type=str, location=OpenApiParameter.QUERY, required=True),
        ],
        responses={200: OpenApiResponse(response=RaceGateSerializer, description="Gate decision.")},
        tags=["Anti-bot"],
    )
    def get(self, request: Request) -> Response:
        serializer = CanRaceQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        gate = RiskAssessmentService().can_player_race(serializer.validated_data["wallet"])
        return Response(RaceGateSerializer(gate).data, status=status.HTTP_200_OK)


class BehaviorProfileDetailView(APIView):
    """**GET /api/antibot/profiles/<wallet>/** — stored profile (staff only)."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Behavior profile",
        responses={
            200: OpenApiResponse(response=BehaviorProfileSerializer, description="Profile."),
            404: OpenApiResponse(description="No profile for this wallet."),
        },
        tags=["Anti-bot"],
    )
    def get(self, request: Request, wallet: str) -> Response:
        profile = RiskAssessmentService().get_profile(wallet)
        return Response(BehaviorProfileSerializer(profile).data, status=status.HTTP_200_OK)


class BehaviorProfileClearView(APIView):
    """**POST /api/antibot/profiles/<wallet>/clear/** — lift every penalty (staff only)."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Clear behavior profile",
        request=None,
        responses={
            200: OpenApiResponse(response=BehaviorProfileSerializer, description="Cleared profile."),
            404: OpenApiResponse(description="No profile for this wallet."),
        },
        tags=["Anti-bot"],
    )
    def post(self, request: Request, wallet: str) -> Response:
        profile = RiskAssessmentService().clear_profile(wallet)
        logger.info("Profile %s cleared by %s", profile.wallet_address, request.user)
        return Response(BehaviorProfileSerializer(profile).data, status=status.HTTP_200_OK)


class SecurityReportView(APIView):
    """**GET /api/antibot/report/** — security dashboard (staff only)."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Security report",
        responses={200: OpenApiResponse(response=SecurityReportSerializer, description="Report.")},
        tags=["Anti-bot"],
    )
    def get(self, request: Request) -> Response:
        report = SecurityReportService().generate_security_report()
        return Response(SecurityReportSerializer(report).data, status=status.HTTP_200_OK)
