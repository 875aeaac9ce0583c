"""Repository modules for each Cosmos DB container."""

from komuness.database.repositories.base import BaseRepository, PreconditionFailedError
from komuness.database.repositories.publications import PublicationRepository
from komuness.database.repositories.uploads import UploadRepository

__all__ = [
    "BaseRepository",
    "PreconditionFailedError",
    "PublicationRepository",
    "UploadRepository",
]
