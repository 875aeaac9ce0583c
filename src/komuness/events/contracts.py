"""Typed contracts for publication events sent to the message bus."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class PublicationEvent(StrEnum):
    """Event types emitted by publication and moderation operations."""

    CREATED = "publication-created"
    EDIT_REQUESTED = "edit-requested"
    EDIT_APPROVED = "edit-approved"
    EDIT_REJECTED = "edit-rejected"
    EDIT_CANCELLED = "edit-cancelled"


class EventEnvelope(BaseModel):
    """Canonical event envelope used on Service Bus."""

    event: str
    data: dict[str, Any] | str
