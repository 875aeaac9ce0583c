"""Raw, unvalidated publication input as received from a multipart form."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SubmittedFile:
    filename: str
    content_type: str | None
    data: bytes


@dataclass(frozen=True)
class PublicationSubmission:
    """Form values before normalization; None means the field was not sent."""

    titulo: str | None = None
    contenido: str | None = None
    fecha_evento: str | None = None
    hora_evento: str | None = None
    precio: Any = None
    precio_estudiante: Any = None
    precio_ciudadano_oro: Any = None
    telefono: str | None = None
    categoria: str | None = None
    enlaces_externos: Any = None
    imagenes_mantenidas: Any = None
    tag: str | None = None
    publicado: Any = None
