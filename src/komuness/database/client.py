"""Cosmos DB connection holding the publications and uploads containers."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from azure.cosmos import PartitionKey
from azure.cosmos.aio import CosmosClient as AzureCosmosClient
from azure.cosmos.aio import DatabaseProxy

from komuness.config import CosmosConfig

logger = logging.getLogger(__name__)

# Both containers are partitioned by document id.
CONTAINERS = ("publications", "uploads")


class CosmosClient:
    """Owns the async SDK client and the ``komuness`` database handle."""

    def __init__(self, config: CosmosConfig) -> None:
        self._config = config
        self._client: AzureCosmosClient | None = None
        self._database: DatabaseProxy | None = None

    async def initialize(self, containers: Iterable[str] = CONTAINERS) -> None:
        """Connect, then create the database and any missing containers."""
        if not self._config.endpoint or not self._config.key:
            msg = "COSMOS_ENDPOINT and COSMOS_KEY must be set to store publications"
            raise ConnectionError(msg)
        self._client = AzureCosmosClient(self._config.endpoint, credential=self._config.key)
        self._database = await self._client.create_database_if_not_exists(
            id=self._config.database
        )
        for name in containers:
            await self._database.create_container_if_not_exists(
                id=name, partition_key=PartitionKey(path="/id")
            )
            logger.debug("Container ready — %s/%s", self._config.database, name)

    async def close(self) -> None:
        client, self._client, self._database = self._client, None, None
        if client is not None:
            await client.close()

    @property
    def database(self) -> DatabaseProxy:
        if self._database is None:
            msg = "Cosmos DB is not connected; await initialize() during startup"
            raise RuntimeError(msg)
        return self._database
