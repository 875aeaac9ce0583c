"""Tests for BaseRepository CRUD helpers."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.core import MatchConditions
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from komuness.database.repositories.base import PreconditionFailedError
from komuness.database.repositories.publications import PublicationRepository
from komuness.models.publication import Publication


class _AsyncIter:
    def __init__(self, items):
        self._items = iter(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._items)
        except StopIteration:
            raise StopAsyncIteration from None


class TestBaseRepository:
    """Test the shared repository behaviour through PublicationRepository."""

    @pytest.fixture
    def repo(self) -> PublicationRepository:
        mock_db = MagicMock()
        mock_container = AsyncMock()
        mock_container.query_items = MagicMock()
        mock_db.get_container_client.return_value = mock_container
        return PublicationRepository(mock_db)

    async def test_uses_publications_container(self) -> None:
        mock_db = MagicMock()
        PublicationRepository(mock_db)
        mock_db.get_container_client.assert_called_once_with("publications")

    async def test_create_tracks_etag(self, repo: PublicationRepository) -> None:
        """Verify the server etag is kept on the created model."""
        repo._container.create_item.return_value = {"id": "p1", "_etag": '"e1"'}
        pub = Publication(id="p1", autor="u1", titulo="Hola")

        await repo.create(pub)

        body = repo._container.create_item.call_args.kwargs["body"]
        assert body["id"] == "p1"
        assert "_etag" not in body
        assert "pending_update" not in body
        assert pub.etag == '"e1"'

    async def test_get_returns_none_when_missing(self, repo: PublicationRepository) -> None:
        repo._container.read_item.side_effect = CosmosResourceNotFoundError(
            status_code=404, message="missing"
        )
        assert await repo.get("p1", "p1") is None

    async def test_get_skips_soft_deleted(self, repo: PublicationRepository) -> None:
        repo._container.read_item.return_value = {
            "id": "p1",
            "autor": "u1",
            "deleted_at": "2026-01-01T00:00:00+00:00",
        }
        assert await repo.get("p1", "p1") is None

    async def test_get_loads_etag(self, repo: PublicationRepository) -> None:
        repo._container.read_item.return_value = {"id": "p1", "autor": "u1", "_etag": '"e1"'}

        pub = await repo.get("p1", "p1")

        assert pub is not None
        assert pub.etag == '"e1"'

    async def test_update_without_if_match_is_unconditional(
        self, repo: PublicationRepository
    ) -> None:
        pub = Publication(id="p1", autor="u1", _etag='"e1"')
        repo._container.replace_item.return_value = {"id": "p1", "_etag": '"e2"'}

        await repo.update(pub, "p1")

        kwargs = repo._container.replace_item.call_args.kwargs
        assert "match_condition" not in kwargs
        assert pub.etag == '"e2"'

    async def test_update_if_match_sends_etag(self, repo: PublicationRepository) -> None:
        """Verify conditional replaces pass the etag read earlier."""
        pub = Publication(id="p1", autor="u1", _etag='"e1"')
        repo._container.replace_item.return_value = {"id": "p1", "_etag": '"e2"'}

        await repo.save_if_unchanged(pub)

        kwargs = repo._container.replace_item.call_args.kwargs
        assert kwargs["etag"] == '"e1"'
        assert kwargs["match_condition"] == MatchConditions.IfNotModified

    async def test_precondition_failure_is_translated(
        self, repo: PublicationRepository
    ) -> None:
        pub = Publication(id="p1", autor="u1", _etag='"e1"')
        repo._container.replace_item.side_effect = CosmosHttpResponseError(
            status_code=412, message="Precondition failed"
        )

        with pytest.raises(PreconditionFailedError):
            await repo.save_if_unchanged(pub)

    async def test_other_http_errors_propagate(self, repo: PublicationRepository) -> None:
        pub = Publication(id="p1", autor="u1")
        repo._container.replace_item.side_effect = CosmosHttpResponseError(
            status_code=503, message="Unavailable"
        )

        with pytest.raises(CosmosHttpResponseError):
            await repo.update(pub, "p1")

    async def test_soft_delete_sets_deleted_at(self, repo: PublicationRepository) -> None:
        pub = Publication(id="p1", autor="u1")
        repo._container.replace_item.return_value = {}

        await repo.soft_delete(pub, "p1")

        body = repo._container.replace_item.call_args.kwargs["body"]
        assert body["deleted_at"] is not None

    async def test_delete_ignores_missing(self, repo: PublicationRepository) -> None:
        repo._container.delete_item.side_effect = CosmosResourceNotFoundError(
            status_code=404, message="missing"
        )
        await repo.delete("p1", "p1")

    async def test_query_validates_rows(self, repo: PublicationRepository) -> None:
        repo._container.query_items.return_value = _AsyncIter(
            [{"id": "p1", "autor": "u1"}, {"id": "p2", "autor": "u2"}]
        )

        result = await repo.query("SELECT * FROM c")

        assert [p.id for p in result] == ["p1", "p2"]
        assert repo._container.query_items.call_args.kwargs["parameters"] == []

    async def test_count_returns_scalar(self, repo: PublicationRepository) -> None:
        repo._container.query_items.return_value = _AsyncIter([4])
        assert await repo.count("SELECT VALUE COUNT(1) FROM c") == 4

    async def test_count_empty_is_zero(self, repo: PublicationRepository) -> None:
        repo._container.query_items.return_value = _AsyncIter([])
        assert await repo.count("SELECT VALUE COUNT(1) FROM c") == 0
