"""Cart domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import NotFound


class CartLineNotFound(NotFound):
    """The cart line does not exist or belongs to another user."""

    default_message = "Cart item not found."
