"""Background sweep that removes uploads no publication ever claimed."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from komuness.database.repositories.publications import PublicationRepository
    from komuness.database.repositories.uploads import UploadRepository
    from komuness.storage.blob import BlobStorage

logger = logging.getLogger(__name__)


class UploadReconciler:
    """Periodically settle provisional uploads older than a TTL.

    An upload still referenced by a publication (live images or a pending
    proposal) is marked attached; anything else is deleted. Runs as a
    background task within the FastAPI lifespan.
    """

    def __init__(
        self,
        storage: BlobStorage,
        uploads_repo: UploadRepository,
        publications_repo: PublicationRepository,
        *,
        ttl: timedelta,
        interval_seconds: float,
    ) -> None:
        self._storage = storage
        self._uploads = uploads_repo
        self._publications = publications_repo
        self._ttl = ttl
        self._interval = interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start sweeping in a background task."""
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info("Upload reconciler started — ttl=%s interval=%ss", self._ttl, self._interval)

    async def stop(self) -> None:
        """Stop the background task gracefully."""
        self._running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        logger.info("Upload reconciler stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.reconcile_once()
            except Exception:
                logger.exception("Error reconciling uploads")
            await asyncio.sleep(self._interval)

    async def reconcile_once(self, *, now: datetime | None = None) -> int:
        """Run one sweep and return how many orphaned uploads were deleted."""
        cutoff = (now or datetime.now(UTC)) - self._ttl
        stale = await self._uploads.list_provisional_before(cutoff)
        deleted = 0
        for upload in stale:
            try:
                references = await self._publications.count_attachment_references(upload.id)
                if references:
                    await self._uploads.mark_attached(upload)
                    continue
                await self._storage.delete(upload.id)
                deleted += 1
            except Exception:
                logger.exception("Failed to reconcile upload %s", upload.id)
        if stale:
            logger.info(
                "Upload sweep complete — examined=%d deleted=%d", len(stale), deleted
            )
        return deleted
