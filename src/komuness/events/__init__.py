"""Notifications raised when publications are created or moderated."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from komuness.events.contracts import EventEnvelope, PublicationEvent
from komuness.events.servicebus import ServiceBusPublisher, build_message


@runtime_checkable
class EventPublisher(Protocol):
    """Anything the moderation services can hand a publication event to."""

    async def publish(self, event_type: str, data: dict[str, Any] | str) -> None: ...


__all__ = [
    "EventEnvelope",
    "EventPublisher",
    "PublicationEvent",
    "ServiceBusPublisher",
    "build_message",
]
