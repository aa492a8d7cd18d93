"""Payment reconciliation constants."""

from django.db import models

from modules.orders.constants import PaymentStatus


class NotificationTopic(models.TextChoices):
    PAYMENT = "payment", "Payment"
    MERCHANT_ORDER = "merchant_order", "Merchant order"


class ReconciliationOutcome(models.TextChoices):
    APPLIED = "applied", "Applied"
    DUPLICATE = "duplicate", "Duplicate"
    REJECTED = "rejected", "Rejected"
    IGNORED = "ignored", "Ignored"


class Reason:
    """Machine-readable reasons attached to non-applied outcomes."""

    SAME_STATUS = "same_status"
    TRANSITION_NOT_ALLOWED = "transition_not_allowed"
    OUT_OF_STOCK = "out_of_stock"
    UNKNOWN_TOPIC = "unknown_topic"
    MISSING_REFERENCE = "missing_external_reference"
    UNKNOWN_ORDER = "unknown_order"
    UNRECOGNIZED_STATUS = "unrecognized_status"
    GATEWAY_UNAVAILABLE = "gateway_unavailable"
    CONCURRENT_UPDATE = "concurrent_update"
    UNPARSEABLE = "unparseable_resource"


# Gateway status -> internal payment status.  Anything else is ignored.
VENDOR_STATUS_MAP: dict[str, str] = {
    "approved": PaymentStatus.PAID,
    "pending": PaymentStatus.PENDING,
    "rejected": PaymentStatus.FAILED,
    "cancelled": PaymentStatus.FAILED,
}

# Reasons worth replaying from the notification inbox.
REPLAYABLE_REASONS: tuple[str, ...] = (
    Reason.GATEWAY_UNAVAILABLE,
    Reason.CONCURRENT_UPDATE,
    Reason.UNPARSEABLE,
)

MAX_APPLY_ATTEMPTS = 3
