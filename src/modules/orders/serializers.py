"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import FulfillmentStatus
from modules.orders.models import Order, OrderLine, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ShippingAddressSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    street = serializers.CharField(max_length=255)
    number = serializers.CharField(max_length=20)
    city = serializers.CharField(max_length=120)
    state = serializers.CharField(max_length=2)
    cep = serializers.CharField(max_length=9)
    neighborhood = serializers.CharField(required=False, allow_blank=True, default="")
    complement = serializers.CharField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    document = serializers.CharField(required=False, allow_blank=True, default="")


class PlaceOrderSerializer(serializers.Serializer):
    """Validates the checkout request payload."""

    shipping_address = ShippingAddressSerializer()


class UpdateFulfillmentSerializer(serializers.Serializer):
    fulfillment_status = serializers.ChoiceField(choices=FulfillmentStatus.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderLineSerializer(serializers.ModelSerializer):
    """Read serializer for order lines (checkout snapshot)."""

    class Meta:
        model = OrderLine
        fields = [
            "id",
            "product_id",
            "variant_id",
            "product_name",
            "size",
            "color",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "field",
            "old_status",
            "new_status",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested lines and history."""

    lines = OrderLineSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "payment_status",
            "fulfillment_status",
            "subtotal",
            "shipping_address",
            "tracking_code",
            "created_at",
            "updated_at",
            "lines",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "payment_status",
            "fulfillment_status",
            "subtotal",
            "tracking_code",
            "created_at",
        ]
        read_only_fields = fields
