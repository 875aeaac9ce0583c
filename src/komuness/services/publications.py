"""Publication business logic — create, read, list, delete."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

from komuness.auth.roles import is_admin
from komuness.errors import ForbiddenError, InvalidPublicationError, NotFoundError
from komuness.events.contracts import PublicationEvent
from komuness.models.publication import EditHistoryEntry, Publication
from komuness.services.normalize import (
    parse_event_time,
    parse_external_links,
    parse_phone,
    parse_price,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from komuness.config import ModerationConfig
    from komuness.database.repositories.publications import PublicationRepository
    from komuness.events import EventPublisher
    from komuness.models.publication import Attachment
    from komuness.services.submission import PublicationSubmission, SubmittedFile
    from komuness.storage.blob import BlobStorage

logger = logging.getLogger(__name__)

PRICED_TAGS = frozenset({"evento", "emprendimiento"})


async def load_publication(
    publication_id: str, publications_repo: PublicationRepository
) -> Publication:
    """Fetch an active publication or raise NotFoundError."""
    publication = await publications_repo.get(publication_id, publication_id)
    if publication is None:
        raise NotFoundError
    return publication


async def upload_files(
    files: Sequence[SubmittedFile], storage: BlobStorage
) -> list[Attachment]:
    """Upload files in order; on failure, discard what was already stored."""
    uploaded: list[Attachment] = []
    try:
        for file in files:
            uploaded.append(
                await storage.upload(
                    file.data, filename=file.filename, content_type=file.content_type
                )
            )
    except Exception:
        await storage.discard([image.key for image in uploaded])
        raise
    return uploaded


def paginate(items: list[Any], *, total: int, offset: int, limit: int) -> dict[str, Any]:
    return {
        "data": items,
        "pagination": {
            "offset": offset,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / max(limit, 1)),
        },
    }


async def create_publication(
    author_id: str,
    submission: PublicationSubmission,
    files: Sequence[SubmittedFile],
    *,
    publications_repo: PublicationRepository,
    storage: BlobStorage,
    publisher: EventPublisher,
    config: ModerationConfig,
) -> Publication:
    """Create a publication owned by ``author_id`` with its uploaded images."""
    strict = config.strict_fields
    titulo = (submission.titulo or "").strip()
    if not titulo:
        raise InvalidPublicationError("A title is required")

    tag = submission.tag or "publicacion"
    precio = parse_price(submission.precio, strict=strict)
    if tag in PRICED_TAGS and precio is None:
        raise InvalidPublicationError(
            "A numeric regular price is required for events and businesses"
        )

    publication = Publication(
        autor=author_id,
        tag=tag,
        publicado=str(submission.publicado).lower() == "true",
        titulo=titulo,
        contenido=submission.contenido or "",
        fecha_evento=submission.fecha_evento or None,
        hora_evento=parse_event_time(submission.hora_evento, strict=strict),
        precio=precio,
        precio_estudiante=parse_price(
            submission.precio_estudiante, field="precio_estudiante", strict=strict
        ),
        precio_ciudadano_oro=parse_price(
            submission.precio_ciudadano_oro, field="precio_ciudadano_oro", strict=strict
        ),
        telefono=parse_phone(submission.telefono),
        categoria=submission.categoria or None,
        enlaces_externos=parse_external_links(submission.enlaces_externos) or [],
        max_edits=config.max_edits,
    )

    publication.adjunto = await upload_files(files, storage)
    try:
        await publications_repo.create(publication)
    except Exception:
        await storage.discard([image.key for image in publication.adjunto])
        raise
    await storage.attach([image.key for image in publication.adjunto])

    logger.info(
        "Publication created — id=%s author=%s tag=%s images=%d",
        publication.id,
        author_id,
        tag,
        len(publication.adjunto),
    )
    await publisher.publish(
        PublicationEvent.CREATED,
        {"publication_id": publication.id, "titulo": publication.titulo, "tag": tag},
    )
    return publication


async def list_publications(
    publications_repo: PublicationRepository,
    *,
    tag: str | None = None,
    publicado: bool | None = None,
    categoria: str | None = None,
    offset: int = 0,
    limit: int = 10,
) -> dict[str, Any]:
    """Return a page of publications, newest first."""
    items = await publications_repo.list_filtered(
        tag=tag, publicado=publicado, categoria=categoria, offset=offset, limit=limit
    )
    total = await publications_repo.count_filtered(
        tag=tag, publicado=publicado, categoria=categoria
    )
    return paginate(items, total=total, offset=offset, limit=limit)


async def get_edit_history(
    publication_id: str, publications_repo: PublicationRepository
) -> list[EditHistoryEntry]:
    publication = await load_publication(publication_id, publications_repo)
    return publication.edit_history


async def delete_publication(
    publication_id: str,
    user: dict[str, Any],
    *,
    publications_repo: PublicationRepository,
    storage: BlobStorage,
) -> None:
    """Soft-delete a publication and remove every image it references."""
    publication = await load_publication(publication_id, publications_repo)
    if publication.autor != str(user.get("id")) and not is_admin(user):
        raise ForbiddenError("Only the author or an admin can delete this publication")

    await publications_repo.soft_delete(publication, publication.id)

    keys = {image.key for image in publication.adjunto}
    if publication.pending_update and publication.pending_update.adjunto:
        keys.update(image.key for image in publication.pending_update.adjunto)
    await storage.discard(sorted(keys))
    logger.info(
        "Publication deleted — id=%s by=%s images=%d",
        publication.id,
        user.get("id"),
        len(keys),
    )
