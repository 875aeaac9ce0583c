"""Repository for the uploads container (partitioned by /id)."""

from __future__ import annotations

from datetime import datetime

from komuness.database.repositories.base import BaseRepository
from komuness.models.upload import Upload, UploadStatus


class UploadRepository(BaseRepository[Upload]):
    """Provide data access for upload bookkeeping records."""

    container_name = "uploads"
    model_class = Upload

    async def list_provisional_before(self, cutoff: datetime) -> list[Upload]:
        """Fetch provisional uploads created before ``cutoff``."""
        return await self.query(
            "SELECT * FROM c WHERE c.status = @status"
            " AND c.created_at < @cutoff"
            " AND NOT IS_DEFINED(c.deleted_at)",
            [
                {"name": "@status", "value": UploadStatus.PROVISIONAL.value},
                {"name": "@cutoff", "value": cutoff.isoformat()},
            ],
        )

    async def mark_attached(self, upload: Upload) -> Upload:
        """Record that a durable publication now references the upload."""
        upload.status = UploadStatus.ATTACHED
        return await self.update(upload, upload.id)
