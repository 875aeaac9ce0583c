"""File route — serves stored publication images by key."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from komuness.errors import NotFoundError
from komuness.routes import deps
from komuness.storage.blob import BlobStorage

router = APIRouter(tags=["files"])


@router.get("/files/{key}")
async def get_file(
    key: str, storage: Annotated[BlobStorage, Depends(deps.storage)]
) -> Response:
    """Stream a stored image back to the client."""
    result = await storage.download(key)
    if result is None:
        raise NotFoundError("File not found")
    data, content_type = result
    return Response(
        content=data,
        media_type=content_type,
        headers={"Cache-Control": "public, max-age=86400"},
    )
