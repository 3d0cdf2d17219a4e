"""
Economy app views — **Thin Views**.

Every view follows the same three steps:

    1. Validate input via a serializer.
    2. Delegate to a service in ``economy.services``.
    3. Serialize the result and return a DRF ``Response``.

Domain exceptions raised by the services (``InvalidAmount``,
``CapExceeded``…) are mapped to HTTP responses by
``core.domain.exception_handler``; views do not catch them.

Permission Strategy
-------------------
* Ledger snapshot and split preview: public (``AllowAny``).
* Spends: any authenticated caller (game servers authenticate with JWT).
* Minting, pool payouts, reports and the audit trail: staff only
  (``IsAdminUser``).
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import EconomyEvent
from .serializers import (
    EconomyEventSerializer,
    EconomyReportSerializer,
    EconomySnapshotSerializer,
    EmissionCreateSerializer,
    EmissionResultSerializer,
    PoolDistributionResultSerializer,
    PoolDistributionSerializer,
    SplitPreviewSerializer,
    TransactionCreateSerializer,
    TransactionPreviewSerializer,
    TransactionResultSerializer,
)
from .services import (
    EconomyReportService,
    EmissionController,
    RewardPoolService,
    SupplyLedger,
    TransactionSplitter,
)

logger = logging.getLogger(__name__)

EVENT_LIST_LIMIT = 100


class EconomyStateView(APIView):
    """**GET /api/economy/state/** — current ledger snapshot (public)."""

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Economy state",
        description="Consistent snapshot of minted, burned, pool, treasury and today's emission.",
        responses={200: OpenApiResponse(response=EconomySnapshotSerializer, description="Ledger snapshot.")},
        tags=["Economy"],
    )
    def get(self, request: Request) -> Response:
        snapshot = SupplyLedger().fetch_economy_state()
        return Response(EconomySnapshotSerializer(snapshot).data, status=status.HTTP_200_OK)


class TransactionPreviewView(APIView):
    """**POST /api/economy/transactions/preview/** — pure split preview, no side effects."""

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Preview a transaction split",
        request=TransactionPreviewSerializer,
        responses={
            200: OpenApiResponse(response=SplitPreviewSerializer, description="Burn / pool / treasury split."),
            400: OpenApiResponse(description="Amount missing or not a positive integer."),
        },
        tags=["Economy"],
    )
    def post(self, request: Request) -> Response:
        serializer = TransactionPreviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        preview = TransactionSplitter().preview_split(serializer.validated_data["amount"])
        return Response(SplitPreviewSerializer(preview).data, status=status.HTTP_200_OK)


class TransactionCreateView(APIView):
    """**POST /api/economy/transactions/** — route an NP spend through the split."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Process a transaction",
        request=TransactionCreateSerializer,
        responses={
            201: OpenApiResponse(response=TransactionResultSerializer, description="Split applied."),
            400: OpenApiResponse(description="Invalid amount or wallet."),
            503: OpenApiResponse(description="Ledger store unavailable; nothing was applied."),
        },
        tags=["Economy"],
    )
    def post(self, request: Request) -> Response:
        serializer = TransactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = TransactionSplitter().process_transaction(
            data["amount"],
            wallet=data.get("wallet"),
            description=data["description"],
        )
        if result is None:
            return Response(
                {"detail": "Ledger store unavailable; the transaction was not applied.",
                 "code": "StoreUnavailable"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response(TransactionResultSerializer(result).data, status=status.HTTP_201_CREATED)


class EmissionCreateView(APIView):
    """**POST /api/economy/emissions/** — manual mint (staff only)."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Emit tokens",
        description=(
            "Mint up to `amount` NP subject to the daily limit and the hard cap. "
            "A smaller or zero emission is not an error; `reason` explains it."
        ),
        request=EmissionCreateSerializer,
        responses={200: OpenApiResponse(response=EmissionResultSerializer, description="Emission outcome.")},
        tags=["Economy"],
    )
    def post(self, request: Request) -> Response:
        serializer = EmissionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        logger.info("Manual emission of %s NP to %s requested by %s", data["amount"], data["wallet"], request.user)
        result = EmissionController().emit_tokens(data["wallet"], data["amount"], data["reason"])
        return Response(EmissionResultSerializer(result).data, status=status.HTTP_200_OK)


class PoolDistributionView(APIView):
    """**POST /api/economy/reward-pool/distribute/** — pay out of the reward pool (staff only)."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Distribute from reward pool",
        request=PoolDistributionSerializer,
        responses={
            200: OpenApiResponse(response=PoolDistributionResultSerializer, description="Paid."),
            409: OpenApiResponse(response=PoolDistributionResultSerializer, description="Pool balance insufficient."),
        },
        tags=["Economy"],
    )
    def post(self, request: Request) -> Response:
        serializer = PoolDistributionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        service = RewardPoolService()
        distributed = service.distribute_from_pool(data["wallet"], data["amount"], data["reason"])
        payload = PoolDistributionResultSerializer({
            "distributed": distributed,
            "reward_pool_balance": service.get_reward_pool_balance(),
        }).data
        return Response(
            payload,
            status=status.HTTP_200_OK if distributed else status.HTTP_409_CONFLICT,
        )


class EconomyReportView(APIView):
    """**GET /api/economy/report/** — supply report (staff only)."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Economy report",
        responses={200: OpenApiResponse(response=EconomyReportSerializer, description="Supply report.")},
        tags=["Economy"],
    )
    def get(self, request: Request) -> Response:
        report = EconomyReportService().generate_economy_report()
        return Response(EconomyReportSerializer(report).data, status=status.HTTP_200_OK)


class EconomyEventListView(APIView):
    """**GET /api/economy/events/** — latest ledger movements (staff only)."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Economy audit trail",
        parameters=[
            OpenApiParameter(name="wallet", type=str, location=OpenApiParameter.QUERY, description="Filter by wallet."),
            OpenApiParameter(name="event_type", type=str, location=OpenApiParameter.QUERY, description="Filter by event type."),
        ],
        responses={200: OpenApiResponse(response=EconomyEventSerializer(many=True), description="Most recent events first.")},
        tags=["Economy"],
    )
    def get(self, request: Request) -> Response:
        qs = EconomyEvent.objects.all()
        wallet = request.query_params.get("wallet")
        if wallet:
            qs = qs.filter(wallet=wallet.strip())
        event_type = request.query_params.get("event_type")
        if event_type:
            qs = qs.filter(event_type=event_type)
        serializer = EconomyEventSerializer(qs[:EVENT_LIST_LIMIT], many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)
