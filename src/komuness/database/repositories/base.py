"""Generic repository over a single Cosmos DB container."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, cast

from azure.core import MatchConditions
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from komuness.models.base import DocumentBase

if TYPE_CHECKING:
    from azure.cosmos.aio import DatabaseProxy

T = TypeVar("T", bound=DocumentBase)

HTTP_PRECONDITION_FAILED = 412


class PreconditionFailedError(Exception):
    """A conditional write lost against a concurrent modification."""


class BaseRepository(Generic[T]):
    """CRUD helpers shared by every container repository."""

    container_name: ClassVar[str]
    model_class: type[T]

    def __init__(self, database: DatabaseProxy) -> None:
        self._container = database.get_container_client(self.container_name)

    @staticmethod
    def _body(item: T) -> dict[str, Any]:
        return item.model_dump(mode="json", exclude_none=True)

    @staticmethod
    def _track_etag(item: T, response: object) -> None:
        if isinstance(response, dict):
            etag = response.get("_etag")
            if isinstance(etag, str):
                item.etag = etag

    async def create(self, item: T) -> T:
        """Insert a new document."""
        response = await self._container.create_item(body=self._body(item))
        self._track_etag(item, response)
        return item

    async def get(self, item_id: str, partition_key: str) -> T | None:
        """Fetch an active document by id, or None when missing or soft-deleted."""
        try:
            data = cast(
                "dict[str, Any]",
                await self._container.read_item(item=item_id, partition_key=partition_key),
            )
        except CosmosResourceNotFoundError:
            return None
        if data.get("deleted_at") is not None:
            return None
        return self.model_class.model_validate(data)

    async def update(self, item: T, partition_key: str, *, if_match: bool = False) -> T:
        """Replace a document.

        With ``if_match`` the write only succeeds when the stored etag still
        equals ``item.etag``; otherwise PreconditionFailedError is raised.
        """
        item.updated_at = datetime.now(UTC)
        kwargs: dict[str, Any] = {}
        if if_match and item.etag:
            kwargs["etag"] = item.etag
            kwargs["match_condition"] = MatchConditions.IfNotModified
        try:
            response = await self._container.replace_item(
                item=item.id, body=self._body(item), **kwargs
            )
        except CosmosHttpResponseError as exc:
            if exc.status_code == HTTP_PRECONDITION_FAILED:
                raise PreconditionFailedError(item.id) from exc
            raise
        self._track_etag(item, response)
        return item

    async def soft_delete(self, item: T, partition_key: str) -> T:
        """Mark a document deleted without removing it."""
        item.deleted_at = datetime.now(UTC)
        return await self.update(item, partition_key)

    async def delete(self, item_id: str, partition_key: str) -> None:
        """Permanently remove a document; missing documents are ignored."""
        try:
            await self._container.delete_item(item=item_id, partition_key=partition_key)
        except CosmosResourceNotFoundError:
            return

    async def query(
        self, query: str, parameters: list[dict[str, Any]] | None = None
    ) -> list[T]:
        """Run a SQL query across partitions and validate each result."""
        items: list[T] = []
        async for item in self._container.query_items(
            query=query, parameters=parameters or []
        ):
            items.append(self.model_class.model_validate(item))
        return items

    async def count(
        self, query: str, parameters: list[dict[str, Any]] | None = None
    ) -> int:
        """Run a ``SELECT VALUE COUNT(1)`` query."""
        total = 0
        async for item in self._container.query_items(
            query=query, parameters=parameters or []
        ):
            total = cast("int", item)
        return total
