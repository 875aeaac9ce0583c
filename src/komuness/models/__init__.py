"""Data models for Cosmos DB document types."""

from komuness.models.publication import (
    CONTENT_FIELDS,
    Attachment,
    EditHistoryEntry,
    EditStatus,
    ExternalLink,
    PendingUpdate,
    Publication,
)
from komuness.models.upload import Upload, UploadStatus

__all__ = [
    "CONTENT_FIELDS",
    "Attachment",
    "EditHistoryEntry",
    "EditStatus",
    "ExternalLink",
    "PendingUpdate",
    "Publication",
    "Upload",
    "UploadStatus",
]
