"""Unit tests for ShipmentOrchestrator.

Covers:
- The full five-step run moving the order to ``shipped``.
- Failure at a middle step: shipment marked failed, order untouched,
  resume skips the steps already done.
- Best-effort tracking (partial result) and its later completion.
- Guards: completed shipments, order status, missing sender.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.core.exceptions import UpstreamError, UpstreamTimeout
from modules.core.models import OutboxEvent
from modules.orders.constants import FulfillmentStatus, PaymentStatus, StatusField
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.orders.models import OrderStatusHistory
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.shipping.constants import ShipmentStatus, ShipmentStep
from modules.shipping.dtos import GenerateLabelDTO, SenderDTO
from modules.shipping.exceptions import SenderRequired, ShipmentStepFailed
from modules.shipping.models import Shipment, ShipmentStepLog
from modules.shipping.provider.fake import FakeShippingProvider
from modules.shipping.repositories.django_repository import ShipmentDjangoRepository
from modules.shipping.services import ShipmentOrchestrator, build_cart_payload

pytestmark = pytest.mark.unit

ALL_STEPS = ["Cart-add", "Checkout", "Generate", "Print", "Track"]


@pytest.fixture()
def provider():
    return FakeShippingProvider()


@pytest.fixture()
def orchestrator(provider):
    return ShipmentOrchestrator(
        provider=provider,
        order_repository=OrderDjangoRepository(),
        shipment_repository=ShipmentDjangoRepository(),
    )


@pytest.fixture()
def sender():
    return SenderDTO(
        name="Loja Centro",
        phone="11999990000",
        email="envios@loja.test",
        document="12345678000199",
        address="Rua Augusta",
        number="100",
        district="Consolação",
        city="São Paulo",
        state_abbr="SP",
        postal_code="01304-000",
    )


@pytest.fixture()
def confirmed_order(make_order, make_product):
    product = make_product(price=Decimal("50.00"))
    return make_order(
        lines=[(product, 3, None)],
        payment_status=PaymentStatus.PAID,
        fulfillment_status=FulfillmentStatus.CONFIRMED,
    )


def _dto(order, sender=None, service_id=2):
    return GenerateLabelDTO(order_id=order.id, service_id=service_id, sender=sender)


class TestHappyPath:
    def test_runs_every_step_in_order(self, orchestrator, provider, confirmed_order, sender):
        result = orchestrator.generate_label(_dto(confirmed_order, sender))

        assert provider.steps_called == ALL_STEPS
        assert result.partial is False
        assert result.tracking_code == "ME123456789BR"
        assert result.label_url == "https://labels.example/me-shipment-1.pdf"

    def test_order_is_shipped(self, orchestrator, confirmed_order, sender):
        orchestrator.generate_label(_dto(confirmed_order, sender))

        confirmed_order.refresh_from_db()
        assert confirmed_order.fulfillment_status == FulfillmentStatus.SHIPPED
        assert confirmed_order.tracking_code == "ME123456789BR"
        assert OrderStatusHistory.objects.filter(
            order=confirmed_order,
            field=StatusField.FULFILLMENT,
            new_status=FulfillmentStatus.SHIPPED,
        ).exists()
        assert OutboxEvent.objects.filter(
            event_type="OrderShipped", aggregate_id=str(confirmed_order.id)
        ).exists()

    def test_shipment_record(self, orchestrator, confirmed_order, sender):
        result = orchestrator.generate_label(_dto(confirmed_order, sender))

        shipment = Shipment.objects.get(order=confirmed_order)
        assert str(shipment.id) == result.shipment_id
        assert shipment.status == ShipmentStatus.COMPLETED
        assert shipment.completed_step == 5
        assert shipment.provider_shipment_id == "me-shipment-1"
        assert shipment.service_id == 2
        assert list(shipment.step_logs.values_list("step", flat=True)) == ALL_STEPS

    def test_timeout_reaches_every_call(self, orchestrator, provider, confirmed_order, sender):
        orchestrator.generate_label(_dto(confirmed_order, sender), timeout=3.0)
        assert {call["timeout"] for call in provider.calls} == {3.0}


class TestStepFailure:
    def test_generate_failure(self, orchestrator, provider, confirmed_order, sender):
        provider.fail_at[ShipmentStep.GENERATE] = UpstreamError(
            step=ShipmentStep.GENERATE,
            payload={"message": "Saldo insuficiente"},
            status_code=422,
        )

        with pytest.raises(ShipmentStepFailed) as exc_info:
            orchestrator.generate_label(_dto(confirmed_order, sender))

        assert exc_info.value.step == "Generate"
        assert exc_info.value.payload == {"message": "Saldo insuficiente"}
        assert exc_info.value.as_error()["step"] == "Generate"

        confirmed_order.refresh_from_db()
        assert confirmed_order.fulfillment_status == FulfillmentStatus.CONFIRMED

        shipment = Shipment.objects.get(order=confirmed_order)
        assert shipment.status == ShipmentStatus.FAILED
        assert shipment.failed_step == "Generate"
        assert shipment.completed_step == 2
        assert shipment.error_payload == {"message": "Saldo insuficiente"}
        assert OutboxEvent.objects.filter(event_type="ShipmentFailed").exists()

    def test_resume_skips_completed_steps(
        self, orchestrator, provider, confirmed_order, sender
    ):
        provider.fail_at[ShipmentStep.GENERATE] = UpstreamError(step="Generate")
        with pytest.raises(ShipmentStepFailed):
            orchestrator.generate_label(_dto(confirmed_order, sender))

        provider.fail_at.clear()
        provider.calls.clear()
        result = orchestrator.generate_label(_dto(confirmed_order))

        assert provider.steps_called == ["Generate", "Print", "Track"]
        assert result.tracking_code == "ME123456789BR"
        shipment = Shipment.objects.get(order=confirmed_order)
        assert shipment.status == ShipmentStatus.COMPLETED
        assert shipment.failed_step == ""

    def test_timeout_names_the_step(self, orchestrator, provider, confirmed_order, sender):
        provider.fail_at[ShipmentStep.CHECKOUT] = UpstreamTimeout(step="Checkout")

        with pytest.raises(UpstreamTimeout) as exc_info:
            orchestrator.generate_label(_dto(confirmed_order, sender))

        assert exc_info.value.step == "Checkout"
        shipment = Shipment.objects.get(order=confirmed_order)
        assert shipment.failed_step == "Checkout"
        assert shipment.completed_step == 1

    def test_cart_add_without_id_is_a_failure(
        self, orchestrator, provider, confirmed_order, sender, monkeypatch
    ):
        monkeypatch.setattr(provider, "add_to_cart", lambda payload, timeout=None: {})

        with pytest.raises(ShipmentStepFailed) as exc_info:
            orchestrator.generate_label(_dto(confirmed_order, sender))

        assert exc_info.value.step == "Cart-add"

    def test_print_without_url_is_a_failure(
        self, orchestrator, provider, confirmed_order, sender
    ):
        provider.label_url = ""

        with pytest.raises(ShipmentStepFailed) as exc_info:
            orchestrator.generate_label(_dto(confirmed_order, sender))

        assert exc_info.value.step == "Print"
        assert Shipment.objects.get(order=confirmed_order).completed_step == 3

    @pytest.mark.parametrize("body", [["https://label.test/1.pdf"], "ok", None])
    def test_print_body_that_is_not_an_object(
        self, orchestrator, provider, confirmed_order, sender, monkeypatch, body
    ):
        monkeypatch.setattr(
            provider, "print_label", lambda provider_id, timeout=None: body
        )

        with pytest.raises(ShipmentStepFailed) as exc_info:
            orchestrator.generate_label(_dto(confirmed_order, sender))

        assert exc_info.value.step == "Print"
        shipment = Shipment.objects.get(order=confirmed_order)
        assert shipment.status == ShipmentStatus.FAILED
        assert shipment.failed_step == "Print"
        assert shipment.completed_step == 3
        assert shipment.error_payload == body

    def test_cart_add_body_that_is_not_an_object(
        self, orchestrator, provider, confirmed_order, sender, monkeypatch
    ):
        monkeypatch.setattr(
            provider, "add_to_cart", lambda payload, timeout=None: ["ord-1"]
        )

        with pytest.raises(ShipmentStepFailed) as exc_info:
            orchestrator.generate_label(_dto(confirmed_order, sender))

        assert exc_info.value.step == "Cart-add"
        shipment = Shipment.objects.get(order=confirmed_order)
        assert shipment.status == ShipmentStatus.FAILED
        assert shipment.failed_step == "Cart-add"
        assert shipment.completed_step == 0


class TestTracking:
    def test_missing_code_is_partial(self, orchestrator, provider, confirmed_order, sender):
        provider.tracking_code = None

        result = orchestrator.generate_label(_dto(confirmed_order, sender))

        assert result.partial is True
        assert result.tracking_code is None
        assert result.label_url == provider.label_url
        confirmed_order.refresh_from_db()
        assert confirmed_order.fulfillment_status == FulfillmentStatus.CONFIRMED
        shipment = Shipment.objects.get(order=confirmed_order)
        assert shipment.status == ShipmentStatus.LABEL_READY
        assert shipment.completed_step == 4

    def test_tracking_error_is_partial(self, orchestrator, provider, confirmed_order, sender):
        provider.fail_at[ShipmentStep.TRACK] = UpstreamError(
            step="Track", payload={"message": "indisponível"}
        )

        result = orchestrator.generate_label(_dto(confirmed_order, sender))

        assert result.partial is True
        assert ShipmentStepLog.objects.filter(step="Track", succeeded=False).exists()

    def test_later_run_only_tracks(self, orchestrator, provider, confirmed_order, sender):
        provider.tracking_code = None
        orchestrator.generate_label(_dto(confirmed_order, sender))

        provider.tracking_code = "ME999BR"
        provider.calls.clear()
        result = orchestrator.generate_label(_dto(confirmed_order))

        assert provider.steps_called == ["Track"]
        assert result.partial is False
        confirmed_order.refresh_from_db()
        assert confirmed_order.fulfillment_status == FulfillmentStatus.SHIPPED
        assert confirmed_order.tracking_code == "ME999BR"


class TestGuards:
    def test_completed_shipment_makes_no_calls(
        self, orchestrator, provider, confirmed_order, sender
    ):
        first = orchestrator.generate_label(_dto(confirmed_order, sender))
        provider.calls.clear()

        again = orchestrator.generate_label(_dto(confirmed_order))

        assert provider.calls == []
        assert again == first

    @pytest.mark.parametrize(
        "fulfillment",
        [FulfillmentStatus.PLACED, FulfillmentStatus.CANCELLED, FulfillmentStatus.DELIVERED],
    )
    def test_order_must_be_confirmed(
        self, orchestrator, provider, make_order, make_product, sender, fulfillment
    ):
        order = make_order(
            lines=[(make_product(), 1, None)], fulfillment_status=fulfillment
        )

        with pytest.raises(InvalidOrderStatus):
            orchestrator.generate_label(_dto(order, sender))
        assert provider.calls == []

    def test_unknown_order(self, orchestrator, sender):
        with pytest.raises(OrderNotFound):
            orchestrator.generate_label(
                GenerateLabelDTO(order_id=uuid4(), service_id=1, sender=sender)
            )

    def test_first_run_needs_sender(self, orchestrator, provider, confirmed_order):
        with pytest.raises(SenderRequired):
            orchestrator.generate_label(_dto(confirmed_order))
        assert provider.calls == []
        assert not Shipment.objects.exists()


def test_cart_payload(confirmed_order, sender):
    payload = build_cart_payload(confirmed_order, _dto(confirmed_order, sender))

    assert payload["service"] == 2
    assert payload["from"]["postal_code"] == "01304000"
    assert payload["from"]["state_abbr"] == "SP"
    assert payload["to"]["postal_code"] == "01415000"
    assert payload["to"]["address"] == confirmed_order.shipping_address["street"]
    assert payload["products"] == [
        {
            "name": f"Pedido #{str(confirmed_order.id)[:8]}",
            "quantity": 1,
            "unitary_value": 150.0,
        }
    ]
    assert payload["volumes"] == [
        {
            "width": 20,
            "height": 15,
            "length": 30,
            "weight": pytest.approx(0.9),
            "insurance_value": 150.0,
        }
    ]
    assert payload["options"]["insurance_value"] == 150.0
