"""Catalog API views.

Only the availability read is exposed here; catalog browsing belongs to
the storefront.  Domain errors propagate to the DRF exception handler.
"""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.catalog.serializers import (
    AvailabilityQuerySerializer,
    AvailabilitySerializer,
)
from modules.catalog.services import CatalogService


class ProductViewSet(ViewSet):
    """Stock availability for a (product, size, color) selection."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CatalogService(repository=ProductDjangoRepository())

    @action(detail=True, methods=["get"], url_path="availability")
    def availability(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/availability/?size=&color="""
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        resolved = self._service.resolve(
            str(pk),
            size=query.validated_data.get("size"),
            color=query.validated_data.get("color"),
        )
        resolution = resolved.resolution
        out = AvailabilitySerializer(
            {
                "product_id": resolved.product.id,
                "variant_id": resolution.variant.id if resolution.variant else None,
                "available_quantity": resolution.available_quantity,
                "in_stock": resolution.in_stock,
            }
        )
        return Response(out.data)
