"""Cart API views.

Exposes the ``CartService`` over HTTP.  The caller's identity is taken
from the authenticated request user; domain errors propagate to the DRF
exception handler, so the views never translate exceptions themselves.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView

from modules.cart.dtos import AddToCartDTO, CartLineOutputDTO
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.serializers import AddToCartSerializer, UpdateQuantitySerializer
from modules.cart.services import CartService
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.catalog.services import CatalogService
from modules.core.identity import user_id_from_request


def build_cart_service() -> CartService:
    return CartService(
        cart_repository=CartDjangoRepository(),
        catalog_service=CatalogService(repository=ProductDjangoRepository()),
    )


class _CartAPIView(APIView):
    """Applies the ``cart_mutation`` throttle scope to write methods."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_cart_service()

    def get_throttles(self) -> list[BaseThrottle]:
        if self.request.method in {"POST", "PATCH", "PUT", "DELETE"}:
            self.throttle_scope = "cart_mutation"
        return super().get_throttles()


class CartView(_CartAPIView):
    def get(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        cart = self._service.get_cart(user_id_from_request(request))
        return Response(cart.model_dump(mode="json"))

    def delete(self, request: Request) -> Response:
        """DELETE /api/v1/cart/"""
        self._service.clear_cart(user_id_from_request(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartItemListView(_CartAPIView):
    def post(self, request: Request) -> Response:
        """POST /api/v1/cart/items/"""
        serializer = AddToCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = AddToCartDTO(**serializer.validated_data)
        line = self._service.add_to_cart(user_id_from_request(request), dto)

        out = CartLineOutputDTO.from_entity(line)
        return Response(out.model_dump(mode="json"), status=status.HTTP_201_CREATED)


class CartItemDetailView(_CartAPIView):
    def patch(self, request: Request, pk: str) -> Response:
        """PATCH /api/v1/cart/items/{pk}/

        Returns 204 when the quantity removed the line.
        """
        serializer = UpdateQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        line = self._service.update_quantity(
            user_id_from_request(request),
            pk,
            serializer.validated_data["quantity"],
        )
        if line is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(CartLineOutputDTO.from_entity(line).model_dump(mode="json"))

    def delete(self, request: Request, pk: str) -> Response:
        """DELETE /api/v1/cart/items/{pk}/"""
        self._service.remove_from_cart(user_id_from_request(request), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
