"""DRF serializers for the payment webhook and checkout preference."""

from rest_framework import serializers


class ReconciliationResultSerializer(serializers.Serializer):
    outcome = serializers.CharField()
    reason = serializers.CharField(allow_null=True)
    order_id = serializers.CharField(allow_null=True)
    payment_status = serializers.CharField(allow_null=True)


class PaymentPreferenceSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    preference_id = serializers.CharField()
    init_point = serializers.URLField()
    sandbox_init_point = serializers.CharField(allow_null=True)
