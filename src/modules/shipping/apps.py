from django.apps import AppConfig


class ShippingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.shipping"
    label = "shipping"

    def ready(self) -> None:
        from modules.shipping.events import OrderShipped, ShipmentFailed
        from modules.shipping.handlers import (
            order_shipped_handler,
            shipment_failed_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderShipped, order_shipped_handler)
        event_bus.subscribe(ShipmentFailed, shipment_failed_handler)
