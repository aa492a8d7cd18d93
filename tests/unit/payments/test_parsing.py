"""Unit tests for notification parsing (topic-specific layer)."""

from __future__ import annotations

import pytest

from modules.core.exceptions import UpstreamError
from modules.payments.gateway.fake import FakePaymentGateway
from modules.payments.parsing import (
    UnparseableResource,
    UnsupportedTopic,
    extract_topic_and_id,
    normalize,
)

pytestmark = pytest.mark.unit


class TestExtractTopicAndId:
    def test_query_topic_and_id(self):
        assert extract_topic_and_id({"topic": "payment", "id": "123"}) == (
            "payment",
            "123",
        )

    def test_type_is_an_alias_for_topic(self):
        assert extract_topic_and_id({"type": "payment", "id": "9"}) == ("payment", "9")

    def test_data_id_in_body(self):
        topic, resource_id = extract_topic_and_id(
            {}, {"type": "payment", "data": {"id": 555}}
        )
        assert (topic, resource_id) == ("payment", "555")

    def test_query_wins_over_body(self):
        topic, resource_id = extract_topic_and_id(
            {"topic": "merchant_order", "id": "1"},
            {"type": "payment", "data": {"id": "2"}},
        )
        assert (topic, resource_id) == ("merchant_order", "1")

    def test_blank_values_are_missing(self):
        assert extract_topic_and_id({"topic": " ", "id": ""}) == (None, None)


class TestNormalize:
    def test_payment_topic(self):
        gateway = FakePaymentGateway()
        gateway.add_payment("42", "approved", "order-1")

        normalized = normalize("payment", "42", gateway, timeout=3.0)

        assert normalized.external_reference == "order-1"
        assert normalized.vendor_status == "approved"
        assert gateway.calls == [
            {"step": "GetPayment", "resource_id": "42", "timeout": 3.0}
        ]

    def test_merchant_order_uses_last_payment(self):
        gateway = FakePaymentGateway()
        gateway.add_merchant_order("mo-1", "order-1", ["rejected", "approved"])

        normalized = normalize("merchant_order", "mo-1", gateway)

        assert normalized.external_reference == "order-1"
        assert normalized.vendor_status == "approved"

    def test_merchant_order_without_payments(self):
        gateway = FakePaymentGateway()
        gateway.add_merchant_order("mo-2", "order-1", [])
        assert normalize("merchant_order", "mo-2", gateway).vendor_status is None

    def test_missing_reference_is_none(self):
        gateway = FakePaymentGateway()
        gateway.add_payment("7", "approved", "")
        assert normalize("payment", "7", gateway).external_reference is None

    def test_unknown_topic(self):
        with pytest.raises(UnsupportedTopic):
            normalize("chargebacks", "1", FakePaymentGateway())

    def test_gateway_error_propagates(self):
        with pytest.raises(UpstreamError) as exc_info:
            normalize("payment", "missing", FakePaymentGateway())
        assert exc_info.value.upstream_status == 404


class TestMalformedResource:
    @pytest.mark.parametrize("body", ["<html>maintenance</html>", ["approved"], None])
    def test_payment_that_is_not_an_object(self, monkeypatch, body):
        gateway = FakePaymentGateway()
        monkeypatch.setattr(
            gateway, "get_payment", lambda resource_id, timeout=None: body
        )
        with pytest.raises(UnparseableResource):
            normalize("payment", "42", gateway)

    def test_merchant_order_that_is_not_an_object(self, monkeypatch):
        gateway = FakePaymentGateway()
        monkeypatch.setattr(
            gateway, "get_merchant_order", lambda resource_id, timeout=None: "oops"
        )
        with pytest.raises(UnparseableResource):
            normalize("merchant_order", "mo-1", gateway)

    @pytest.mark.parametrize(
        "payments", ["approved", {"status": "approved"}, ["approved"], [None]]
    )
    def test_malformed_embedded_payments(self, payments):
        gateway = FakePaymentGateway()
        gateway.merchant_orders["mo-1"] = {
            "id": "mo-1",
            "external_reference": "order-1",
            "payments": payments,
        }
        with pytest.raises(UnparseableResource):
            normalize("merchant_order", "mo-1", gateway)
