"""Event bus contracts.

Handlers receive events rebuilt from the outbox by the relay task, so a
handler may see the same event more than once and must tolerate it.
"""

from __future__ import annotations

from typing import Generic, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    def publish(self, event: DomainEvent) -> None:
        """Deliver ``event`` to every handler subscribed to its exact class."""

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...
