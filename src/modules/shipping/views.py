"""Shipping label API (staff only)."""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.shipping.dtos import GenerateLabelDTO, SenderDTO
from modules.shipping.serializers import GenerateLabelSerializer, LabelResultSerializer
from modules.shipping.services import build_orchestrator


class ShippingLabelView(APIView):
    """POST /api/v1/orders/{pk}/shipping-label/

    Runs the label purchase synchronously; a failed step answers 502 (or
    504 on timeout) with the step name and the provider payload.
    """

    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(request=GenerateLabelSerializer, responses=LabelResultSerializer)
    def post(self, request: Request, pk: str) -> Response:
        serializer = GenerateLabelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        sender = serializer.validated_data.get("sender")
        dto = GenerateLabelDTO(
            order_id=pk,
            service_id=serializer.validated_data["service_id"],
            sender=SenderDTO(**sender) if sender else None,
        )
        result = build_orchestrator().generate_label(dto)
        return Response(LabelResultSerializer(result.model_dump()).data)
