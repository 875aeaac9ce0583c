"""Upload document model — tracks blobs until a publication references them."""

from __future__ import annotations

from enum import StrEnum

from komuness.models.base import DocumentBase


class UploadStatus(StrEnum):
    PROVISIONAL = "provisional"
    ATTACHED = "attached"


class Upload(DocumentBase):
    """A stored file; ``id`` doubles as the blob key."""

    folder: str
    filename: str = ""
    content_type: str = "application/octet-stream"
    size: int = 0
    status: UploadStatus = UploadStatus.PROVISIONAL
