"""Publication routes — CRUD plus the edit-request moderation workflow."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel

from komuness.auth.middleware import require_admin, require_authenticated_user
from komuness.config import Settings
from komuness.database.repositories.publications import PublicationRepository
from komuness.events import EventPublisher
from komuness.models.publication import Publication
from komuness.routes import deps
from komuness.services import moderation
from komuness.services import publications as publications_svc
from komuness.services.submission import PublicationSubmission, SubmittedFile
from komuness.storage.blob import BlobStorage

router = APIRouter(prefix="/publicaciones", tags=["publicaciones"])
logger = logging.getLogger(__name__)

User = Annotated[dict[str, Any], Depends(require_authenticated_user)]
Admin = Annotated[dict[str, Any], Depends(require_admin)]
Repo = Annotated[PublicationRepository, Depends(deps.publications_repo)]
Storage = Annotated[BlobStorage, Depends(deps.storage)]
Publisher = Annotated[EventPublisher, Depends(deps.publisher)]
AppSettings = Annotated[Settings, Depends(deps.settings)]
Submission = Annotated[PublicationSubmission, Depends(deps.submission_form)]
Files = Annotated[list[SubmittedFile], Depends(deps.submitted_files)]
Page = Annotated[deps.PageParams, Depends(deps.page_params)]


class RejectRequest(BaseModel):
    reason: str | None = None


def _dump(publication: Publication) -> dict[str, Any]:
    return publication.model_dump(mode="json")


def _dump_page(page: dict[str, Any]) -> dict[str, Any]:
    return {**page, "data": [_dump(item) for item in page["data"]]}


@router.get("/admin/pending-updates")
async def pending_updates(_admin: Admin, repo: Repo, page: Page) -> dict[str, Any]:
    """List publications with a proposal awaiting review."""
    result = await moderation.list_pending_updates(
        repo, offset=page.offset, limit=page.limit
    )
    return _dump_page(result)


@router.put("/admin/{publication_id}/approve-update")
async def approve_update(
    publication_id: str,
    admin: Admin,
    repo: Repo,
    storage: Storage,
    publisher: Publisher,
) -> dict[str, Any]:
    """Apply a pending proposal."""
    publication, changed = await moderation.approve_update(
        publication_id,
        str(admin["id"]),
        publications_repo=repo,
        storage=storage,
        publisher=publisher,
    )
    return {
        "message": f"Update approved. Updated fields: {', '.join(changed)}",
        "publicacion": _dump(publication),
        "camposActualizados": changed,
    }


@router.put("/admin/{publication_id}/reject-update")
async def reject_update(
    publication_id: str,
    admin: Admin,
    repo: Repo,
    storage: Storage,
    publisher: Publisher,
    payload: Annotated[RejectRequest | None, Body()] = None,
) -> dict[str, Any]:
    """Discard a pending proposal, optionally with a reason."""
    reason = payload.reason if payload else None
    publication = await moderation.reject_update(
        publication_id,
        str(admin["id"]),
        reason,
        publications_repo=repo,
        storage=storage,
        publisher=publisher,
    )
    suffix = f": {reason}" if reason else ""
    return {"message": f"Update rejected{suffix}", "publicacion": _dump(publication)}


@router.put("/{publication_id}/request-update")
async def request_update(  # noqa: PLR0913
    publication_id: str,
    user: User,
    repo: Repo,
    storage: Storage,
    publisher: Publisher,
    settings: AppSettings,
    submission: Submission,
    files: Files,
) -> dict[str, Any]:
    """Submit a proposed edit for admin review."""
    publication, changed = await moderation.request_update(
        publication_id,
        str(user["id"]),
        submission,
        files,
        publications_repo=repo,
        storage=storage,
        publisher=publisher,
        strict=settings.moderation.strict_fields,
    )
    return {
        "message": "Edit request submitted for review",
        "publicacion": _dump(publication),
        "camposCambiados": changed,
    }


@router.put("/{publication_id}/cancel-update")
async def cancel_update(
    publication_id: str,
    user: User,
    repo: Repo,
    storage: Storage,
    publisher: Publisher,
) -> dict[str, Any]:
    """Withdraw the caller's pending proposal."""
    publication = await moderation.cancel_update_request(
        publication_id,
        str(user["id"]),
        publications_repo=repo,
        storage=storage,
        publisher=publisher,
    )
    return {"message": "Edit request cancelled", "publicacion": _dump(publication)}


@router.get("/{publication_id}/edit-history")
async def edit_history(publication_id: str, repo: Repo) -> dict[str, Any]:
    entries = await publications_svc.get_edit_history(publication_id, repo)
    return {"data": [entry.model_dump(mode="json") for entry in entries]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_publication(  # noqa: PLR0913
    user: User,
    repo: Repo,
    storage: Storage,
    publisher: Publisher,
    settings: AppSettings,
    submission: Submission,
    files: Files,
) -> dict[str, Any]:
    """Create a publication owned by the session user."""
    publication = await publications_svc.create_publication(
        str(user["id"]),
        submission,
        files,
        publications_repo=repo,
        storage=storage,
        publisher=publisher,
        config=settings.moderation,
    )
    return _dump(publication)


@router.get("")
async def list_publications(
    repo: Repo,
    page: Page,
    tag: str | None = None,
    publicado: bool | None = None,
    categoria: str | None = None,
) -> dict[str, Any]:
    result = await publications_svc.list_publications(
        repo,
        tag=tag,
        publicado=publicado,
        categoria=categoria,
        offset=page.offset,
        limit=page.limit,
    )
    return _dump_page(result)


@router.get("/{publication_id}")
async def get_publication(publication_id: str, repo: Repo) -> dict[str, Any]:
    publication = await publications_svc.load_publication(publication_id, repo)
    return _dump(publication)


@router.delete("/{publication_id}")
async def delete_publication(
    publication_id: str, user: User, repo: Repo, storage: Storage
) -> dict[str, Any]:
    await publications_svc.delete_publication(
        publication_id, user, publications_repo=repo, storage=storage
    )
    return {"message": "Publication deleted"}
