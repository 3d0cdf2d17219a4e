"""
Core app views — **Thin Views**.

Each view delegates all business logic to the corresponding service in
``core.services``.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import OpenApiResponse, extend_schema

from .serializers import SystemConstantsSerializer
from .services import SystemConstantsService


class SystemConstantsView(APIView):
    """
    **GET /api/core/constants/**

    Return risk tiers, penalty tiers, event types and the active economy
    tunables so the client can label and explain rewards without
    hardcoding values.

    **Authentication**: Not required (``AllowAny``).
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="System constants",
        description=(
            "Return all economy and risk enumerations plus the active split "
            "percentages, emission schedule and per-risk-level policy."
        ),
        responses={200: OpenApiResponse(response=SystemConstantsSerializer, description="System constants.")},
        tags=["System"],
    )
    def get(self, request: Request) -> Response:
        """Handle GET request — delegate to ``SystemConstantsService``."""
        data = SystemConstantsService.get_constants()
        serializer = SystemConstantsSerializer(data)
        return Response(serializer.data, status=status.HTTP_200_OK)
