"""DRF serializers for the shipping label API."""

from rest_framework import serializers


def _optional(max_length: int) -> serializers.CharField:
    return serializers.CharField(
        max_length=max_length, required=False, allow_blank=True, default=""
    )


class SenderSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = _optional(20)
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    document = _optional(20)
    address = serializers.CharField(max_length=255)
    number = serializers.CharField(max_length=20)
    complement = _optional(255)
    district = _optional(100)
    city = serializers.CharField(max_length=100)
    state_abbr = serializers.CharField(max_length=2)
    postal_code = serializers.CharField(max_length=10)


class GenerateLabelSerializer(serializers.Serializer):
    service_id = serializers.IntegerField(min_value=1)
    sender = SenderSerializer(required=False)


class LabelResultSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    shipment_id = serializers.CharField()
    label_url = serializers.CharField(allow_null=True)
    tracking_code = serializers.CharField(allow_null=True)
    partial = serializers.BooleanField()
