"""Base repository contract shared by every module.

Services receive repositories through their constructor and only ever
talk to these abstractions; the Django implementations live next to each
interface in ``django_repository.py``.  Writes that must be race-free
(stock decrements, status compare-and-swap) are declared on the
module-specific interfaces, not here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar

from django.db.models import QuerySet

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """CRUD surface for one aggregate (``Product``, ``Order``, ``Shipment``...)."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """``None`` for unknown or malformed ids."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Lazy queryset so callers can filter, order and paginate further."""

    @abstractmethod
    def save(self, entity: T) -> T: ...

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Hard delete; ``False`` when nothing matched."""
