"""Shipment workflow constants.

The label purchase is a fixed sequence of provider calls.  Step numbers
are 1-based positions in ``SHIPMENT_STEPS``; ``Shipment.completed_step``
stores the last one that succeeded (0 = nothing done yet).
"""

from django.db import models


class ShipmentStep:
    CART_ADD = "Cart-add"
    CHECKOUT = "Checkout"
    GENERATE = "Generate"
    PRINT = "Print"
    TRACK = "Track"


SHIPMENT_STEPS: tuple[str, ...] = (
    ShipmentStep.CART_ADD,
    ShipmentStep.CHECKOUT,
    ShipmentStep.GENERATE,
    ShipmentStep.PRINT,
    ShipmentStep.TRACK,
)


class ShipmentStatus(models.TextChoices):
    IN_PROGRESS = "in_progress", "Em andamento"
    FAILED = "failed", "Falhou"
    LABEL_READY = "label_ready", "Etiqueta pronta"
    COMPLETED = "completed", "Concluído"


# Package heuristic
PACKAGE_WIDTH_CM = 20
PACKAGE_LENGTH_CM = 30
PACKAGE_HEIGHT_PER_ITEM_CM = 5
PACKAGE_MAX_HEIGHT_CM = 100
PACKAGE_WEIGHT_PER_ITEM_KG = "0.3"
