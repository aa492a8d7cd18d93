"""Payment notification webhook and checkout preference endpoint.

The gateway calls the webhook with ``?topic=<topic>&id=<resource id>``
(or the same fields in a JSON body).  Any notification carrying both is
acknowledged with 200, whatever the reconciliation outcome, so the gateway
stops redelivering it; only a missing topic or id is a 400.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.identity import user_id_from_request
from modules.payments.parsing import extract_topic_and_id
from modules.payments.serializers import (
    PaymentPreferenceSerializer,
    ReconciliationResultSerializer,
)
from modules.payments.services import build_preference_service, build_reconciler


class PaymentNotificationView(APIView):
    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_classes: list = []

    @extend_schema(
        parameters=[
            OpenApiParameter("topic", str, description="payment | merchant_order"),
            OpenApiParameter("id", str, description="Gateway resource id"),
        ],
        responses=ReconciliationResultSerializer,
    )
    def post(self, request: Request) -> Response:
        topic, resource_id = extract_topic_and_id(
            request.query_params,
            request.data if isinstance(request.data, dict) else None,
        )
        if not topic or not resource_id:
            return Response(
                {
                    "type": "validation_error",
                    "errors": [
                        {
                            "code": "invalid",
                            "detail": "Both topic and id are required.",
                            "attr": "topic" if not topic else "id",
                        }
                    ],
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = build_reconciler().handle_notification(topic, resource_id)
        return Response(ReconciliationResultSerializer(result.model_dump()).data)

    get = post


class PaymentPreferenceView(APIView):
    """POST /api/v1/orders/{pk}/payment/

    Opens a gateway checkout for one of the caller's orders and returns the
    URL the buyer pays at.  Paid or cancelled orders answer 409.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={201: PaymentPreferenceSerializer})
    def post(self, request: Request, pk: str) -> Response:
        result = build_preference_service().create_preference(
            pk, user_id_from_request(request)
        )
        return Response(
            PaymentPreferenceSerializer(result.model_dump()).data,
            status=status.HTTP_201_CREATED,
        )
