"""Payment Reconciler and checkout preferences.

Turns gateway notifications into payment status transitions on orders.
``PaymentPreferenceService`` opens the gateway checkout those
notifications later report on.

Flow per notification:
1. Upsert the inbox row (``PaymentNotification``).
2. Fetch the authoritative resource from the gateway and normalize it
   (``parsing``).  The notification body itself is never trusted.
3. Map the vendor status and decide the transition (``transitions``).
4. Apply it with a compare-and-swap on ``payment_status``; a lost race
   re-reads the order and decides again, a bounded number of times.

Moving to ``paid`` commits stock in the same transaction, so a shortage
rolls the whole transition back and the order is never paid without stock.

Reconciliation failures are never raised to the caller: every notification
ends in a ``ReconciliationResultDTO`` that says what happened and why.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.catalog.exceptions import OutOfStock
from modules.core.exceptions import UpstreamError, UpstreamTimeout
from modules.core.outbox import record_events
from modules.orders.constants import FulfillmentStatus, PaymentStatus, StatusField
from modules.orders.events import OrderStatusChanged
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.payments.constants import (
    MAX_APPLY_ATTEMPTS,
    Reason,
    ReconciliationOutcome,
)
from modules.payments.dtos import PaymentPreferenceDTO, ReconciliationResultDTO
from modules.payments.events import (
    OrderStockShortage,
    PaymentConfirmed,
    PaymentFailed,
    PaymentPending,
)
from modules.payments.gateway import get_gateway
from modules.payments.parsing import (
    NormalizedNotification,
    UnparseableResource,
    UnsupportedTopic,
    normalize,
)
from modules.payments.transitions import decide, fulfillment_effect, target_status
from shared.domain.events import DomainEvent

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderLine
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.stock import StockCommitter
    from modules.payments.gateway.port import PaymentGateway
    from modules.payments.repositories.interfaces import INotificationRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "payments"
PREFERENCE_STEP = "CreatePreference"

PAYMENT_EVENTS = {
    PaymentStatus.PAID: PaymentConfirmed,
    PaymentStatus.PENDING: PaymentPending,
    PaymentStatus.FAILED: PaymentFailed,
}


class PaymentReconciler:
    def __init__(
        self,
        gateway: PaymentGateway,
        order_repository: IOrderRepository,
        notification_repository: INotificationRepository,
        stock_committer: StockCommitter,
        timeout: Optional[float] = None,
        max_attempts: int = MAX_APPLY_ATTEMPTS,
    ) -> None:
        self._gateway = gateway
        self._order_repo = order_repository
        self._inbox = notification_repository
        self._stock = stock_committer
        self._timeout = timeout
        self._max_attempts = max_attempts

    def handle_notification(
        self, topic: str, resource_id: str, timeout: Optional[float] = None
    ) -> ReconciliationResultDTO:
        """Process one delivery of a ``(topic, resource_id)`` notification."""
        log = logger.bind(topic=topic, resource_id=resource_id)
        notification = self._inbox.record_delivery(topic, resource_id)

        normalized: Optional[NormalizedNotification] = None
        try:
            normalized = normalize(
                topic,
                resource_id,
                self._gateway,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except UnsupportedTopic:
            result = ReconciliationResultDTO(
                outcome=ReconciliationOutcome.IGNORED, reason=Reason.UNKNOWN_TOPIC
            )
        except UnparseableResource:
            log.warning("payment.unparseable_resource")
            result = ReconciliationResultDTO(
                outcome=ReconciliationOutcome.IGNORED, reason=Reason.UNPARSEABLE
            )
        except (UpstreamError, UpstreamTimeout) as exc:
            log.warning(
                "payment.gateway_unavailable",
                step=exc.step,
                error_code=exc.code,
                upstream_status=getattr(exc, "upstream_status", None),
            )
            result = ReconciliationResultDTO(
                outcome=ReconciliationOutcome.IGNORED,
                reason=Reason.GATEWAY_UNAVAILABLE,
            )
        else:
            result = self.apply(normalized)

        if result.outcome == ReconciliationOutcome.IGNORED:
            log.info("payment.notification_ignored", reason=result.reason)

        self._inbox.record_outcome(
            str(notification.id),
            result.outcome,
            result.reason,
            external_reference=normalized.external_reference if normalized else None,
            vendor_status=normalized.vendor_status if normalized else None,
        )
        return result

    def apply(self, notification: NormalizedNotification) -> ReconciliationResultDTO:
        """Apply a normalized notification to its order."""
        log = logger.bind(
            topic=notification.topic,
            resource_id=notification.resource_id,
            order_id=notification.external_reference,
        )

        if not notification.external_reference:
            return ReconciliationResultDTO(
                outcome=ReconciliationOutcome.IGNORED, reason=Reason.MISSING_REFERENCE
            )

        target = target_status(notification.vendor_status)
        if target is None:
            log.info("payment.unrecognized_status", vendor_status=notification.vendor_status)
            return ReconciliationResultDTO(
                outcome=ReconciliationOutcome.IGNORED,
                reason=Reason.UNRECOGNIZED_STATUS,
                order_id=notification.external_reference,
            )

        for attempt in range(1, self._max_attempts + 1):
            order = self._order_repo.get_by_id(notification.external_reference)
            if order is None:
                return ReconciliationResultDTO(
                    outcome=ReconciliationOutcome.IGNORED,
                    reason=Reason.UNKNOWN_ORDER,
                    order_id=notification.external_reference,
                )

            current = order.payment_status
            decision = decide(current, target)
            if not decision.should_apply:
                if decision.outcome == ReconciliationOutcome.REJECTED:
                    log.warning(
                        "payment.transition_rejected",
                        current_status=current,
                        target_status=target,
                    )
                else:
                    log.info("payment.duplicate", current_status=current)
                return ReconciliationResultDTO(
                    outcome=decision.outcome,
                    reason=decision.reason,
                    order_id=str(order.id),
                    payment_status=current,
                )

            try:
                applied = self._try_apply(order, target, notification)
            except OutOfStock as exc:
                self._record_shortage(order, notification, exc)
                log.warning("payment.stock_shortage", product=exc.product_name)
                return ReconciliationResultDTO(
                    outcome=ReconciliationOutcome.REJECTED,
                    reason=Reason.OUT_OF_STOCK,
                    order_id=str(order.id),
                    payment_status=current,
                )

            if applied:
                log.info(
                    "payment.transition_applied",
                    old_status=current,
                    new_status=target,
                )
                return ReconciliationResultDTO(
                    outcome=ReconciliationOutcome.APPLIED,
                    order_id=str(order.id),
                    payment_status=target,
                )

            log.info("payment.cas_conflict", attempt=attempt, observed_status=current)

        log.warning("payment.concurrent_update", attempts=self._max_attempts)
        return ReconciliationResultDTO(
            outcome=ReconciliationOutcome.IGNORED,
            reason=Reason.CONCURRENT_UPDATE,
            order_id=notification.external_reference,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @transaction.atomic
    def _try_apply(
        self, order: Order, target: str, notification: NormalizedNotification
    ) -> bool:
        """Write one transition; ``False`` when another writer got there first.

        Raises:
            OutOfStock: confirmation could not commit stock; everything
                written here is rolled back.
        """
        current = order.payment_status
        commits_stock = (
            target == PaymentStatus.PAID
            and not order.stock_committed
            and order.fulfillment_status != FulfillmentStatus.CANCELLED
        )

        fields = {}
        if target == PaymentStatus.PAID:
            fields["payment_reference"] = notification.resource_id
        if commits_stock:
            fields["stock_committed"] = True

        # Stock and fulfillment decisions above rely on the fulfillment status
        # read with the order, so the write must still see it.
        if not self._order_repo.compare_and_set_payment_status(
            order.id,
            current,
            target,
            expected_fulfillment=order.fulfillment_status,
            **fields,
        ):
            return False

        self._order_repo.add_history(
            order_id=order.id,
            field=StatusField.PAYMENT,
            old_status=current,
            new_status=target,
            notes=f"{notification.topic} {notification.resource_id}",
        )

        if commits_stock:
            self._stock.commit(order)

        events: List[DomainEvent] = [
            PAYMENT_EVENTS[target](
                aggregate_id=order.id,
                previous_status=current,
                resource_id=notification.resource_id,
            )
        ]

        fulfillment = fulfillment_effect(target, order.fulfillment_status)
        if fulfillment and self._order_repo.update_fulfillment(
            order.id, order.fulfillment_status, fulfillment
        ):
            self._order_repo.add_history(
                order_id=order.id,
                field=StatusField.FULFILLMENT,
                old_status=order.fulfillment_status,
                new_status=fulfillment,
                notes="Payment confirmed",
            )
            events.append(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=order.fulfillment_status,
                    new_status=fulfillment,
                )
            )

        record_events(events, OUTBOX_TOPIC)
        return True

    @transaction.atomic
    def _record_shortage(
        self, order: Order, notification: NormalizedNotification, exc: OutOfStock
    ) -> None:
        record_events(
            [
                OrderStockShortage(
                    aggregate_id=order.id,
                    resource_id=notification.resource_id,
                    product_name=exc.product_name,
                )
            ],
            OUTBOX_TOPIC,
        )


class PaymentPreferenceService:
    """Opens a gateway checkout for an order the caller owns.

    The preference carries the order id as ``external_reference``, which
    is how later notifications find their way back to the order.
    """

    def __init__(
        self,
        gateway: PaymentGateway,
        order_repository: IOrderRepository,
        notification_url: str = "",
        site_url: str = "",
        statement_descriptor: str = "",
        timeout: Optional[float] = None,
    ) -> None:
        self._gateway = gateway
        self._order_repo = order_repository
        self._notification_url = notification_url
        self._site_url = site_url.rstrip("/")
        self._statement_descriptor = statement_descriptor
        self._timeout = timeout

    def create_preference(self, order_id: str, user_id: str) -> PaymentPreferenceDTO:
        """Create a checkout preference for one of the caller's orders.

        Raises:
            OrderNotFound: the order does not exist or belongs to someone else.
            InvalidOrderStatus: the order is already paid or was cancelled.
            UpstreamError / UpstreamTimeout: the gateway call failed or its
                answer has no preference id or checkout URL.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None or order.user_id != user_id:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order.id))
        if order.payment_status == PaymentStatus.PAID:
            raise InvalidOrderStatus("The order is already paid.")
        if order.fulfillment_status == FulfillmentStatus.CANCELLED:
            raise InvalidOrderStatus("The order was cancelled.")

        response = self._gateway.create_preference(
            self._build_payload(order), timeout=self._timeout
        )
        if not isinstance(response, dict):
            raise UpstreamError(step=PREFERENCE_STEP, payload=response)
        preference_id = response.get("id")
        init_point = response.get("init_point")
        if not preference_id or not init_point:
            raise UpstreamError(step=PREFERENCE_STEP, payload=response)

        log.info("payment.preference_created", preference_id=str(preference_id))
        return PaymentPreferenceDTO(
            order_id=str(order.id),
            preference_id=str(preference_id),
            init_point=init_point,
            sandbox_init_point=response.get("sandbox_init_point"),
        )

    def _build_payload(self, order: Order) -> Dict[str, Any]:
        address = order.shipping_address or {}
        reference = str(order.id)
        return_url = f"{self._site_url}/pedido/{reference}"
        payload: Dict[str, Any] = {
            "items": [_preference_item(line) for line in order.lines.all()],
            "payer": {
                "name": address.get("name") or "Cliente",
                "email": address.get("email") or "",
            },
            "back_urls": {
                "success": return_url,
                "failure": return_url,
                "pending": return_url,
            },
            "auto_return": "approved",
            "external_reference": reference,
        }
        if self._statement_descriptor:
            payload["statement_descriptor"] = self._statement_descriptor
        if self._notification_url:
            payload["notification_url"] = self._notification_url
        return payload


def _preference_item(line: OrderLine) -> Dict[str, Any]:
    variant = " / ".join(value for value in (line.size, line.color) if value)
    title = f"{line.product_name} ({variant})" if variant else line.product_name
    return {
        "id": str(line.product_id),
        "title": title,
        "quantity": line.quantity,
        "currency_id": "BRL",
        "unit_price": float(line.unit_price),
    }


def build_reconciler(gateway: Optional[PaymentGateway] = None) -> PaymentReconciler:
    from django.conf import settings

    from modules.catalog.repositories.django_repository import ProductDjangoRepository
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.orders.stock import StockCommitter
    from modules.payments.repositories.django_repository import (
        NotificationDjangoRepository,
    )

    return PaymentReconciler(
        gateway=gateway or get_gateway(),
        order_repository=OrderDjangoRepository(),
        notification_repository=NotificationDjangoRepository(),
        stock_committer=StockCommitter(ProductDjangoRepository()),
        timeout=settings.PAYMENT_GATEWAY_TIMEOUT,
    )


def build_preference_service(
    gateway: Optional[PaymentGateway] = None,
) -> PaymentPreferenceService:
    from django.conf import settings

    from modules.orders.repositories.django_repository import OrderDjangoRepository

    return PaymentPreferenceService(
        gateway=gateway or get_gateway(),
        order_repository=OrderDjangoRepository(),
        notification_url=settings.MERCADO_PAGO_NOTIFICATION_URL,
        site_url=settings.PUBLIC_SITE_URL,
        statement_descriptor=settings.MERCADO_PAGO_STATEMENT_DESCRIPTOR,
        timeout=settings.PAYMENT_GATEWAY_TIMEOUT,
    )
