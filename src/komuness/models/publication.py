"""Publication document model — listings with moderated edit requests."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from komuness.models.base import DocumentBase

DEFAULT_MAX_EDITS = 3

CONTENT_FIELDS: tuple[str, ...] = (
    "titulo",
    "contenido",
    "fecha_evento",
    "hora_evento",
    "precio",
    "precio_estudiante",
    "precio_ciudadano_oro",
    "telefono",
    "categoria",
    "enlaces_externos",
    "adjunto",
)


class EditStatus(StrEnum):
    APPROVED = "approved"
    REJECTED = "rejected"


class ExternalLink(BaseModel):
    """A named external link shown on a publication."""

    nombre: str
    url: str


class Attachment(BaseModel):
    """An image stored in blob storage, addressed by its key."""

    url: str
    key: str


class PublicationContent(BaseModel):
    """Editable content fields shared by publications and edit proposals."""

    titulo: str | None = None
    contenido: str | None = None
    fecha_evento: str | None = None
    hora_evento: str | None = None
    precio: float | None = None
    precio_estudiante: float | None = None
    precio_ciudadano_oro: float | None = None
    telefono: str | None = None
    categoria: str | None = None
    enlaces_externos: list[ExternalLink] | None = None
    adjunto: list[Attachment] | None = None


class PendingUpdate(PublicationContent):
    """The single in-flight edit proposal awaiting an admin decision."""

    requested_at: datetime
    requested_by: str

    def proposed_fields(self) -> dict[str, Any]:
        """Return only the content fields present in the proposal."""
        return self.model_dump(include=set(CONTENT_FIELDS), exclude_none=True)


class EditHistoryEntry(BaseModel):
    """An immutable record of a resolved proposal."""

    version: int
    data: dict[str, Any] = Field(default_factory=dict)
    edited_at: datetime | None = None
    edited_by: str | None = None
    approved_by: str | None = None
    approved_at: datetime
    status: EditStatus
    reason: str | None = None


class Publication(DocumentBase, PublicationContent):
    """A listed item (event, business listing or post) owned by its author."""

    autor: str
    tag: str = "publicacion"
    publicado: bool = False
    enlaces_externos: list[ExternalLink] = Field(default_factory=list)
    adjunto: list[Attachment] = Field(default_factory=list)

    edit_count: int = 0
    max_edits: int = DEFAULT_MAX_EDITS
    pending_update: PendingUpdate | None = None
    last_edit_request: datetime | None = None
    edit_history: list[EditHistoryEntry] = Field(default_factory=list)

    @property
    def edits_remaining(self) -> int:
        return max(self.max_edits - self.edit_count, 0)

    def live_value(self, field_name: str) -> Any:
        """Return a content field dumped the same way proposals are dumped."""
        return self.model_dump(include={field_name})[field_name]
