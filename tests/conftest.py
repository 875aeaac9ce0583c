"""Shared fixtures: an in-memory Cosmos container with etag semantics."""

from __future__ import annotations

import asyncio
import copy
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.core import MatchConditions
from azure.cosmos.exceptions import (
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)

from komuness.database.repositories.publications import PublicationRepository
from komuness.models.publication import Attachment, ExternalLink, Publication

AUTHOR_ID = "user-author"


class InMemoryContainer:
    """Just enough of ``ContainerProxy`` for read/replace/create/delete.

    Every call yields to the event loop once so concurrent tasks interleave
    the way they would against a real network round-trip.
    """

    def __init__(self) -> None:
        self.items: dict[str, dict[str, Any]] = {}
        self._version = 0

    def _next_etag(self) -> str:
        self._version += 1
        return f'"etag-{self._version}"'

    async def create_item(self, body: dict[str, Any]) -> dict[str, Any]:
        await asyncio.sleep(0)
        if body["id"] in self.items:
            raise CosmosResourceExistsError(status_code=409, message="Conflict")
        stored = {**copy.deepcopy(body), "_etag": self._next_etag()}
        self.items[body["id"]] = stored
        return copy.deepcopy(stored)

    async def read_item(self, item: str, partition_key: str) -> dict[str, Any]:
        await asyncio.sleep(0)
        if item not in self.items:
            raise CosmosResourceNotFoundError(status_code=404, message="Not found")
        return copy.deepcopy(self.items[item])

    async def replace_item(
        self,
        item: str,
        body: dict[str, Any],
        etag: str | None = None,
        match_condition: MatchConditions | None = None,
    ) -> dict[str, Any]:
        await asyncio.sleep(0)
        if item not in self.items:
            raise CosmosResourceNotFoundError(status_code=404, message="Not found")
        if (
            match_condition is MatchConditions.IfNotModified
            and self.items[item]["_etag"] != etag
        ):
            raise CosmosHttpResponseError(status_code=412, message="Precondition failed")
        stored = {**copy.deepcopy(body), "_etag": self._next_etag()}
        self.items[item] = stored
        return copy.deepcopy(stored)

    async def delete_item(self, item: str, partition_key: str) -> None:
        await asyncio.sleep(0)
        if item not in self.items:
            raise CosmosResourceNotFoundError(status_code=404, message="Not found")
        del self.items[item]


@pytest.fixture
def container() -> InMemoryContainer:
    return InMemoryContainer()


@pytest.fixture
def database(container: InMemoryContainer) -> MagicMock:
    db = MagicMock()
    db.get_container_client.return_value = container
    return db


@pytest.fixture
def publications_repo(database: MagicMock) -> PublicationRepository:
    return PublicationRepository(database)


@pytest.fixture
def storage() -> MagicMock:
    """A BlobStorage stand-in whose uploads get deterministic keys."""

    async def upload(data: bytes, *, filename: str, content_type: str | None, **_: Any):
        return Attachment(url=f"https://cdn.test/api/files/new-{filename}", key=f"new-{filename}")

    mock = MagicMock()
    mock.upload = AsyncMock(side_effect=upload)
    mock.attach = AsyncMock()
    mock.discard = AsyncMock()
    return mock


@pytest.fixture
def publisher() -> AsyncMock:
    mock = AsyncMock()
    mock.publish = AsyncMock()
    return mock


@pytest.fixture
def make_publication(publications_repo: PublicationRepository):
    """Store a publication and return it re-read (so it carries an etag)."""

    async def _make(**overrides: Any) -> Publication:
        fields: dict[str, Any] = {
            "autor": AUTHOR_ID,
            "tag": "evento",
            "titulo": "Feria de emprendedores",
            "contenido": "Sábado en el parque central",
            "fecha_evento": "2026-11-07",
            "hora_evento": "09:00",
            "precio": 2000.0,
            "categoria": "cat-1",
            "enlaces_externos": [
                ExternalLink(nombre="Sitio", url="https://feria.example.com")
            ],
            "adjunto": [
                Attachment(url="https://cdn.test/api/files/img-1", key="img-1"),
                Attachment(url="https://cdn.test/api/files/img-2", key="img-2"),
            ],
        }
        fields.update(overrides)
        publication = Publication(**fields)
        await publications_repo.create(publication)
        stored = await publications_repo.get(publication.id, publication.id)
        assert stored is not None
        return stored

    return _make
