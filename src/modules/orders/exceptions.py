"""Order domain exceptions.

Raised by the Service Layer when business rules are violated and
rendered by the DRF exception handler.
"""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import DomainError, NotFound


class OrderNotFound(NotFound):
    """The requested order does not exist (or is not visible to the caller)."""

    default_message = "Order not found."


class InvalidOrderStatus(DomainError):
    """The order's current status does not allow the requested operation."""

    code = "invalid_order_status"
    status_code = status.HTTP_409_CONFLICT
    default_message = "The order status does not allow this operation."


class EmptyCart(DomainError):
    """Checkout was attempted with an empty cart."""

    code = "empty_cart"
    default_message = "The cart is empty."
