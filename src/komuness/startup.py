"""Startup helpers that build the shared clients held on ``app.state``."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from komuness.database.client import CosmosClient
from komuness.database.repositories.publications import PublicationRepository
from komuness.database.repositories.uploads import UploadRepository
from komuness.storage.blob import BlobStorage
from komuness.storage.reconciler import UploadReconciler

if TYPE_CHECKING:
    from komuness.config import Settings

logger = logging.getLogger(__name__)


async def init_database(settings: Settings) -> CosmosClient:
    """Connect to Cosmos DB and make sure its containers exist."""
    cosmos = CosmosClient(settings.cosmos)
    await cosmos.initialize()
    logger.info("Cosmos DB connected — database=%s", settings.cosmos.database)
    return cosmos


async def init_storage(settings: Settings, cosmos: CosmosClient) -> BlobStorage:
    """Connect to blob storage for publication images."""
    storage = BlobStorage(settings.storage, UploadRepository(cosmos.database))
    await storage.initialize()
    logger.info("Blob storage connected — container=%s", settings.storage.container)
    return storage


def init_reconciler(
    settings: Settings, cosmos: CosmosClient, storage: BlobStorage
) -> UploadReconciler:
    """Build the background sweep for orphaned uploads."""
    return UploadReconciler(
        storage,
        UploadRepository(cosmos.database),
        PublicationRepository(cosmos.database),
        ttl=timedelta(minutes=settings.storage.upload_ttl_minutes),
        interval_seconds=settings.storage.sweep_interval_seconds,
    )
