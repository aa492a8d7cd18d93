"""Cart DRF serializers for API input.

Responses are rendered from the Pydantic output DTOs.
"""

from __future__ import annotations

from rest_framework import serializers


class AddToCartSerializer(serializers.Serializer):
    """Validates the add-to-cart request payload."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    size = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=None
    )
    color = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=None
    )


class UpdateQuantitySerializer(serializers.Serializer):
    """``quantity <= 0`` is accepted and means "remove the line"."""

    quantity = serializers.IntegerField()
