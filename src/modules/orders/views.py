"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions propagate to the DRF exception handler, which renders
them in the standard error envelope.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import BasePermission, IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.catalog.services import CatalogService
from modules.core.identity import user_id_from_request
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import PlaceOrderDTO, ShippingAddressDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    OrderListSerializer,
    OrderSerializer,
    PlaceOrderSerializer,
    UpdateFulfillmentSerializer,
)
from modules.orders.services import OrderService
from modules.orders.stock import StockCommitter


def build_order_service() -> OrderService:
    product_repository = ProductDjangoRepository()
    return OrderService(
        order_repository=OrderDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        catalog_service=CatalogService(repository=product_repository),
        stock_committer=StockCommitter(product_repository),
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Buyers see their own orders; staff see all of them and may move the
    fulfillment status.  All ORM access goes through the service layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "subtotal"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self) -> list[BasePermission]:
        if self.action == "partial_update":
            return [IsAuthenticated(), IsAdminUser()]
        return super().get_permissions()

    def get_throttles(self) -> list[BaseThrottle]:
        """Define escopos de throttling por ação."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def _owner_scope(self, request: Request) -> str | None:
        """``None`` (all orders) for staff, the caller's id otherwise."""
        if request.user.is_staff:
            return None
        return user_id_from_request(request)

    # ------------------------------------------------------------------
    # Create (checkout)
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = PlaceOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = PlaceOrderDTO(
            shipping_address=ShippingAddressDTO(
                **serializer.validated_data["shipping_address"]
            )
        )
        order = self._service.place_order(user_id_from_request(request), dto)

        out = OrderSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_orders(self._owner_scope(self.request))

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (statuses, date range, subtotal range) is handled by
        ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(str(pk), user_id=self._owner_scope(request))
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Fulfillment update (staff)
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/"""
        serializer = UpdateFulfillmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self._service.update_fulfillment_status(
            str(pk),
            serializer.validated_data["fulfillment_status"],
            notes=serializer.validated_data["notes"],
        )
        return Response(OrderSerializer(order).data)
