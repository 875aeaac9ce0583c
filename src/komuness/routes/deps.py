"""Request-scoped accessors for the shared clients held on ``app.state``."""

from __future__ import annotations

from typing import Annotated, NamedTuple

from fastapi import File, Form, Query, Request, UploadFile

from komuness.config import Settings
from komuness.database.repositories.publications import PublicationRepository
from komuness.events import EventPublisher
from komuness.services.submission import PublicationSubmission, SubmittedFile
from komuness.storage.blob import BlobStorage


def publications_repo(request: Request) -> PublicationRepository:
    return PublicationRepository(request.app.state.cosmos.database)


def storage(request: Request) -> BlobStorage:
    return request.app.state.storage


def publisher(request: Request) -> EventPublisher:
    return request.app.state.event_publisher


def settings(request: Request) -> Settings:
    return request.app.state.settings


DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class PageParams(NamedTuple):
    offset: int
    limit: int


def _positive_int(raw: str | None) -> int | None:
    """Parse a query value, returning None for anything but a positive integer."""
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value > 0 else None


def page_params(
    offset: Annotated[str | None, Query()] = None,
    limit: Annotated[str | None, Query()] = None,
) -> PageParams:
    """Read paging parameters leniently.

    Missing, unparsable, zero or negative values fall back to offset 0 and
    limit 10; the limit is capped at 100.
    """
    return PageParams(
        offset=_positive_int(offset) or 0,
        limit=min(_positive_int(limit) or DEFAULT_LIMIT, MAX_LIMIT),
    )


def submission_form(  # noqa: PLR0913
    titulo: Annotated[str | None, Form()] = None,
    contenido: Annotated[str | None, Form()] = None,
    fecha_evento: Annotated[str | None, Form(alias="fechaEvento")] = None,
    hora_evento: Annotated[str | None, Form(alias="horaEvento")] = None,
    precio: Annotated[str | None, Form()] = None,
    precio_estudiante: Annotated[str | None, Form(alias="precioEstudiante")] = None,
    precio_ciudadano_oro: Annotated[
        str | None, Form(alias="precioCiudadanoOro")
    ] = None,
    telefono: Annotated[str | None, Form()] = None,
    categoria: Annotated[str | None, Form()] = None,
    enlaces_externos: Annotated[str | None, Form(alias="enlacesExternos")] = None,
    imagenes_mantenidas: Annotated[
        str | None, Form(alias="imagenesMantenidas")
    ] = None,
    tag: Annotated[str | None, Form()] = None,
    publicado: Annotated[str | None, Form()] = None,
) -> PublicationSubmission:
    """Collect the multipart text fields of a publication form."""
    return PublicationSubmission(
        titulo=titulo,
        contenido=contenido,
        fecha_evento=fecha_evento,
        hora_evento=hora_evento,
        precio=precio,
        precio_estudiante=precio_estudiante,
        precio_ciudadano_oro=precio_ciudadano_oro,
        telefono=telefono,
        categoria=categoria,
        enlaces_externos=enlaces_externos,
        imagenes_mantenidas=imagenes_mantenidas,
        tag=tag,
        publicado=publicado,
    )


async def submitted_files(
    archivos: Annotated[list[UploadFile] | None, File()] = None,
) -> list[SubmittedFile]:
    """Read uploaded ``archivos`` into memory."""
    return [
        SubmittedFile(
            filename=upload.filename or "",
            content_type=upload.content_type,
            data=await upload.read(),
        )
        for upload in archivos or []
    ]
