"""Catalog DRF serializers for the availability endpoint."""

from __future__ import annotations

from rest_framework import serializers


class AvailabilityQuerySerializer(serializers.Serializer):
    """Validates ``?size=&color=`` query parameters."""

    size = serializers.CharField(required=False, allow_blank=True, default=None)
    color = serializers.CharField(required=False, allow_blank=True, default=None)


class AvailabilitySerializer(serializers.Serializer):
    """Read serializer for a resolved stock answer."""

    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(allow_null=True)
    available_quantity = serializers.IntegerField()
    in_stock = serializers.BooleanField()
