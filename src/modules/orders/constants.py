"""Order domain constants.

An order carries two independent status machines:

- ``payment_status``: driven by payment gateway notifications.  ``paid`` is
  absorbing; ``failed`` may still be retried by the buyer.
- ``fulfillment_status``: driven by operators and the shipment workflow.

The only coupling between them is declared in ``PAYMENT_FULFILLMENT_EFFECTS``.
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    UNSET = "unset", "Sem pagamento"
    PENDING = "pending", "Pendente"
    PAID = "paid", "Pago"
    FAILED = "failed", "Falhou"


class FulfillmentStatus(models.TextChoices):
    PLACED = "placed", "Recebido"
    CONFIRMED = "confirmed", "Confirmado"
    SHIPPED = "shipped", "Enviado"
    DELIVERED = "delivered", "Entregue"
    CANCELLED = "cancelled", "Cancelado"


class StatusField(models.TextChoices):
    PAYMENT = "payment", "Pagamento"
    FULFILLMENT = "fulfillment", "Atendimento"


PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    PaymentStatus.UNSET: {
        PaymentStatus.PENDING,
        PaymentStatus.PAID,
        PaymentStatus.FAILED,
    },
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PENDING, PaymentStatus.PAID},
    PaymentStatus.PAID: set(),
}

FULFILLMENT_TRANSITIONS: dict[str, set[str]] = {
    FulfillmentStatus.PLACED: {FulfillmentStatus.CONFIRMED, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.CONFIRMED: {FulfillmentStatus.SHIPPED, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.SHIPPED: {FulfillmentStatus.DELIVERED},
    FulfillmentStatus.DELIVERED: set(),
    FulfillmentStatus.CANCELLED: set(),
}

# payment status reached -> (fulfillment required, fulfillment applied)
PAYMENT_FULFILLMENT_EFFECTS: dict[str, tuple[str, str]] = {
    PaymentStatus.PAID: (FulfillmentStatus.PLACED, FulfillmentStatus.CONFIRMED),
}

TERMINAL_FULFILLMENT_STATES: set[str] = {
    FulfillmentStatus.DELIVERED,
    FulfillmentStatus.CANCELLED,
}

ORDER_NUMBER_MAX_RETRIES = 5
