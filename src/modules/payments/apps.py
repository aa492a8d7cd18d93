from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.payments"
    label = "payments"

    def ready(self) -> None:
        from modules.payments.events import (
            OrderStockShortage,
            PaymentConfirmed,
            PaymentFailed,
            PaymentPending,
        )
        from modules.payments.handlers import (
            order_stock_shortage_handler,
            payment_confirmed_handler,
            payment_failed_handler,
            payment_pending_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(PaymentConfirmed, payment_confirmed_handler)
        event_bus.subscribe(PaymentPending, payment_pending_handler)
        event_bus.subscribe(PaymentFailed, payment_failed_handler)
        event_bus.subscribe(OrderStockShortage, order_stock_shortage_handler)
