"""Cart repository interface.

Every method is scoped to one ``user_id``: a user can never read or
mutate another user's lines through this contract.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.cart.models import CartLine


class ICartRepository(IRepository["CartLine"]):
    """Repository contract for cart lines."""

    @abstractmethod
    def get_line(self, user_id: str, line_id: str) -> Optional[CartLine]:
        """Retrieve one of the user's lines, ``None`` if absent."""

    @abstractmethod
    def find_by_key(
        self, user_id: str, product_id: str, size: str, color: str
    ) -> Optional[CartLine]:
        """Exact natural-key look-up (``""`` stands for unset)."""

    @abstractmethod
    def list_for_user(self, user_id: str) -> List[CartLine]:
        """All lines of the user with their product loaded."""

    @abstractmethod
    def add_quantity(
        self, user_id: str, product_id: str, size: str, color: str, quantity: int
    ) -> CartLine:
        """Increment the line for the key, inserting it when missing."""

    @abstractmethod
    def set_quantity(self, line: CartLine, quantity: int) -> CartLine:
        """Overwrite the quantity of an existing line."""

    @abstractmethod
    def delete_line(self, user_id: str, line_id: str) -> int:
        """Delete one of the user's lines; returns the number removed."""

    @abstractmethod
    def clear(self, user_id: str) -> int:
        """Delete all of the user's lines; returns the number removed."""
