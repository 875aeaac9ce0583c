"""Blob storage client for uploaded images.

Every upload is recorded as provisional until a publication that references
it is saved; the reconciler removes provisional uploads nobody claimed.
"""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient, ContainerClient

from komuness.models.publication import Attachment
from komuness.models.upload import Upload, UploadStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from komuness.config import StorageConfig
    from komuness.database.repositories.uploads import UploadRepository

logger = logging.getLogger(__name__)

_SAFE_EXTENSION = re.compile(r"^\.[a-z0-9]{1,8}$")
_DEFAULT_CONTENT_TYPE = "application/octet-stream"


def make_key(filename: str) -> str:
    """Build an opaque blob key, keeping only a sanitized file extension."""
    suffix = PurePosixPath(filename.replace("\\", "/")).suffix.lower()
    if not _SAFE_EXTENSION.match(suffix):
        suffix = ""
    return f"{uuid.uuid4().hex}{suffix}"


class BlobStorage:
    """Store, serve and delete publication images in a blob container."""

    def __init__(self, config: StorageConfig, uploads_repo: UploadRepository) -> None:
        self._config = config
        self._uploads = uploads_repo
        self._service: BlobServiceClient | None = None
        self._container: ContainerClient | None = None

    async def initialize(self) -> None:
        """Connect to the storage account and ensure the container exists."""
        self._service = BlobServiceClient.from_connection_string(
            self._config.connection_string
        )
        self._container = self._service.get_container_client(self._config.container)
        if not await self._container.exists():
            await self._container.create_container()
            logger.info("Created blob container — name=%s", self._config.container)

    async def close(self) -> None:
        """Close the underlying client."""
        if self._service:
            await self._service.close()
            self._service = None
            self._container = None

    @property
    def container(self) -> ContainerClient:
        if self._container is None:
            raise RuntimeError("BlobStorage not initialized — call initialize() first")
        return self._container

    def url_for(self, key: str) -> str:
        return f"{self._config.public_base_url.rstrip('/')}/api/files/{key}"

    async def upload(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str | None,
        folder: str = "publicaciones",
    ) -> Attachment:
        """Store a file and record it as a provisional upload."""
        key = make_key(filename)
        await self.container.upload_blob(
            name=key,
            data=data,
            overwrite=False,
            content_settings=ContentSettings(
                content_type=content_type or _DEFAULT_CONTENT_TYPE
            ),
            metadata={"folder": folder},
        )
        await self._uploads.create(
            Upload(
                id=key,
                folder=folder,
                filename=PurePosixPath(filename.replace("\\", "/")).name,
                content_type=content_type or _DEFAULT_CONTENT_TYPE,
                size=len(data),
            )
        )
        logger.info("Stored upload — key=%s folder=%s bytes=%d", key, folder, len(data))
        return Attachment(url=self.url_for(key), key=key)

    async def attach(self, keys: Iterable[str]) -> None:
        """Mark uploads as referenced by a saved publication (best effort)."""
        for key in keys:
            try:
                upload = await self._uploads.get(key, key)
                if upload and upload.status == UploadStatus.PROVISIONAL:
                    await self._uploads.mark_attached(upload)
            except Exception:  # noqa: BLE001
                logger.warning("Failed to mark upload attached — key=%s", key, exc_info=True)

    async def delete(self, key: str) -> None:
        """Remove a blob and its upload record."""
        try:
            await self.container.delete_blob(key)
        except ResourceNotFoundError:
            logger.debug("Blob already gone — key=%s", key)
        await self._uploads.delete(key, key)
        logger.info("Deleted upload — key=%s", key)

    async def discard(self, keys: Iterable[str]) -> None:
        """Delete several uploads, logging failures instead of raising."""
        for key in keys:
            try:
                await self.delete(key)
            except Exception:  # noqa: BLE001
                logger.warning(
                    "Failed to delete upload — key=%s",
                    key,
                    exc_info=True,
                )

    async def download(self, key: str) -> tuple[bytes, str] | None:
        """Return the blob contents and content type, or None when missing."""
        try:
            stream = await self.container.download_blob(key)
        except ResourceNotFoundError:
            return None
        data = await stream.readall()
        settings = stream.properties.content_settings
        return data, settings.content_type or _DEFAULT_CONTENT_TYPE
