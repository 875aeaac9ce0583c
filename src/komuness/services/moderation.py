"""Edit-request moderation — request, approve, reject, cancel, list pending.

A publication holds at most one pending proposal. Every write here is
conditional on the etag read at the start of the operation, so a concurrent
writer makes the later operation fail with PendingUpdateConflictError instead
of silently overwriting the earlier one.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from komuness.database.repositories.base import PreconditionFailedError
from komuness.errors import (
    EditLimitExceededError,
    ForbiddenError,
    NoChangesError,
    NotFoundError,
    PendingUpdateConflictError,
)
from komuness.events.contracts import PublicationEvent
from komuness.models.publication import (
    CONTENT_FIELDS,
    EditHistoryEntry,
    EditStatus,
    PendingUpdate,
    Publication,
)
from komuness.services.normalize import (
    parse_event_time,
    parse_external_links,
    parse_kept_images,
    parse_price,
)
from komuness.services.publications import load_publication, paginate, upload_files

if TYPE_CHECKING:
    from collections.abc import Sequence

    from komuness.database.repositories.publications import PublicationRepository
    from komuness.events import EventPublisher
    from komuness.services.submission import PublicationSubmission, SubmittedFile
    from komuness.storage.blob import BlobStorage

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("titulo", "contenido", "fecha_evento", "telefono", "categoria")
_PRICE_FIELDS = ("precio", "precio_estudiante", "precio_ciudadano_oro")
_CONCURRENT_WRITE = "The publication changed while this request was processed; reload and retry"


def _proposed_values(
    submission: PublicationSubmission, publication: Publication, *, strict: bool
) -> dict[str, Any]:
    """Normalize submitted fields into proposal values (images excluded)."""
    values: dict[str, Any] = {}
    for field in _TEXT_FIELDS:
        raw = getattr(submission, field)
        if raw is not None:
            values[field] = raw

    for field in _PRICE_FIELDS:
        price = parse_price(getattr(submission, field), field=field, strict=strict)
        if price is not None:
            values[field] = price

    hora = parse_event_time(submission.hora_evento, strict=strict)
    if hora is not None:
        values["hora_evento"] = hora

    links = parse_external_links(submission.enlaces_externos)
    values["enlaces_externos"] = (
        links if links is not None else list(publication.enlaces_externos)
    )
    return values


def changed_fields(publication: Publication, pending: PendingUpdate) -> list[str]:
    """List proposed fields whose value differs from the live publication."""
    return [
        field
        for field, value in pending.proposed_fields().items()
        if value != publication.live_value(field)
    ]


def _history_entry(
    publication: Publication,
    pending: PendingUpdate,
    *,
    admin_id: str,
    status: EditStatus,
    data: dict[str, Any],
    reason: str | None = None,
) -> EditHistoryEntry:
    now = datetime.now(UTC)
    return EditHistoryEntry(
        version=len(publication.edit_history) + 1,
        data=data,
        edited_at=publication.last_edit_request or now,
        edited_by=pending.requested_by,
        approved_by=admin_id,
        approved_at=now,
        status=status,
        reason=reason,
    )


def _clear_pending(publication: Publication) -> None:
    publication.pending_update = None
    publication.last_edit_request = None


async def _save(publication: Publication, publications_repo: PublicationRepository) -> None:
    try:
        await publications_repo.save_if_unchanged(publication)
    except PreconditionFailedError as exc:
        raise PendingUpdateConflictError(_CONCURRENT_WRITE) from exc


def _proposal_only_keys(publication: Publication, pending: PendingUpdate) -> list[str]:
    """Image keys uploaded for a proposal that the live publication lacks."""
    live = {image.key for image in publication.adjunto}
    return [image.key for image in pending.adjunto or [] if image.key not in live]


async def request_update(
    publication_id: str,
    requester_id: str,
    submission: PublicationSubmission,
    files: Sequence[SubmittedFile],
    *,
    publications_repo: PublicationRepository,
    storage: BlobStorage,
    publisher: EventPublisher,
    strict: bool = False,
) -> tuple[Publication, list[str]]:
    """Record an author's proposed changes for admin review.

    Returns the updated publication and the names of the fields that differ.
    """
    publication = await load_publication(publication_id, publications_repo)
    if publication.autor != requester_id:
        raise ForbiddenError("Only the author can edit this publication")
    if publication.edit_count >= publication.max_edits:
        msg = f"The limit of {publication.max_edits} edits for this publication has been reached"
        raise EditLimitExceededError(msg)
    if publication.pending_update is not None:
        raise PendingUpdateConflictError

    values = _proposed_values(submission, publication, strict=strict)
    kept = parse_kept_images(submission.imagenes_mantenidas, publication.adjunto)
    uploaded = await upload_files(files, storage)

    try:
        now = datetime.now(UTC)
        pending = PendingUpdate(
            **values,
            adjunto=[*kept, *uploaded],
            requested_at=now,
            requested_by=requester_id,
        )
        changed = changed_fields(publication, pending)
        if not changed:
            raise NoChangesError
        publication.pending_update = pending
        publication.last_edit_request = now
        await _save(publication, publications_repo)
    except Exception:
        await storage.discard([image.key for image in uploaded])
        raise

    await storage.attach([image.key for image in uploaded])
    logger.info(
        "Edit requested — publication=%s author=%s changed=%s",
        publication.id,
        requester_id,
        ",".join(changed),
    )
    await publisher.publish(
        PublicationEvent.EDIT_REQUESTED,
        {
            "publication_id": publication.id,
            "titulo": publication.titulo,
            "requested_by": requester_id,
            "changed": changed,
        },
    )
    return publication, changed


async def approve_update(
    publication_id: str,
    admin_id: str,
    *,
    publications_repo: PublicationRepository,
    storage: BlobStorage,
    publisher: EventPublisher,
) -> tuple[Publication, list[str]]:
    """Apply the pending proposal to the live publication.

    The edit counter is incremented even when no field actually differed.
    """
    publication = await load_publication(publication_id, publications_repo)
    pending = publication.pending_update
    if pending is None:
        raise NotFoundError("No pending edit request for this publication")

    previous_keys = {image.key for image in publication.adjunto}
    proposed = pending.proposed_fields()
    changed: list[str] = []
    for field in CONTENT_FIELDS:
        if field == "enlaces_externos":
            links = list(pending.enlaces_externos or [])
            if proposed.get(field, []) != publication.live_value(field):
                changed.append(field)
            publication.enlaces_externos = links
        elif field in proposed and proposed[field] != publication.live_value(field):
            setattr(publication, field, getattr(pending, field))
            changed.append(field)

    if not changed:
        logger.warning(
            "Approving edit with no effective changes — publication=%s", publication.id
        )

    publication.edit_count += 1
    entry = _history_entry(
        publication,
        pending,
        admin_id=admin_id,
        status=EditStatus.APPROVED,
        data=pending.model_dump(mode="json", include=set(CONTENT_FIELDS), exclude_none=True),
    )
    publication.edit_history.append(entry)
    _clear_pending(publication)
    await _save(publication, publications_repo)

    dropped = previous_keys - {image.key for image in publication.adjunto}
    await storage.discard(sorted(dropped))

    logger.info(
        "Edit approved — publication=%s version=%d admin=%s edit_count=%d changed=%s",
        publication.id,
        entry.version,
        admin_id,
        publication.edit_count,
        ",".join(changed),
    )
    await publisher.publish(
        PublicationEvent.EDIT_APPROVED,
        {
            "publication_id": publication.id,
            "version": entry.version,
            "requested_by": entry.edited_by,
            "changed": changed,
        },
    )
    return publication, changed


async def reject_update(
    publication_id: str,
    admin_id: str,
    reason: str | None = None,
    *,
    publications_repo: PublicationRepository,
    storage: BlobStorage,
    publisher: EventPublisher,
) -> Publication:
    """Discard the pending proposal, recording it as rejected."""
    publication = await load_publication(publication_id, publications_repo)
    pending = publication.pending_update
    if pending is None:
        raise NotFoundError("Publication or pending edit request not found")

    reason = reason.strip() if reason and reason.strip() else None
    entry = _history_entry(
        publication,
        pending,
        admin_id=admin_id,
        status=EditStatus.REJECTED,
        data=pending.model_dump(mode="json", exclude_none=True),
        reason=reason,
    )
    orphaned = _proposal_only_keys(publication, pending)
    publication.edit_history.append(entry)
    _clear_pending(publication)
    await _save(publication, publications_repo)
    await storage.discard(orphaned)

    logger.info(
        "Edit rejected — publication=%s version=%d admin=%s",
        publication.id,
        entry.version,
        admin_id,
    )
    await publisher.publish(
        PublicationEvent.EDIT_REJECTED,
        {
            "publication_id": publication.id,
            "version": entry.version,
            "requested_by": entry.edited_by,
            "reason": reason,
        },
    )
    return publication


async def cancel_update_request(
    publication_id: str,
    requester_id: str,
    *,
    publications_repo: PublicationRepository,
    storage: BlobStorage,
    publisher: EventPublisher,
) -> Publication:
    """Withdraw the author's pending proposal without recording history."""
    publication = await load_publication(publication_id, publications_repo)
    if publication.autor != requester_id:
        raise ForbiddenError("Only the author can cancel this request")

    pending = publication.pending_update
    if pending is None:
        return publication

    orphaned = _proposal_only_keys(publication, pending)
    _clear_pending(publication)
    await _save(publication, publications_repo)
    await storage.discard(orphaned)

    logger.info("Edit request cancelled — publication=%s", publication.id)
    await publisher.publish(
        PublicationEvent.EDIT_CANCELLED,
        {"publication_id": publication.id, "requested_by": requester_id},
    )
    return publication


async def list_pending_updates(
    publications_repo: PublicationRepository, *, offset: int = 0, limit: int = 10
) -> dict[str, Any]:
    """Return a page of publications awaiting moderation."""
    items = await publications_repo.list_pending_updates(offset, limit)
    total = await publications_repo.count_pending_updates()
    return paginate(items, total=total, offset=offset, limit=limit)
