"""Repository for the publications container (partitioned by /id)."""

from __future__ import annotations

from typing import Any

from komuness.database.repositories.base import BaseRepository
from komuness.models.publication import Publication

_ACTIVE = "NOT IS_DEFINED(c.deleted_at)"
_PENDING = "IS_DEFINED(c.pending_update)"


class PublicationRepository(BaseRepository[Publication]):
    """Provide data access for the publications container."""

    container_name = "publications"
    model_class = Publication

    async def list_pending_updates(self, offset: int, limit: int) -> list[Publication]:
        """Fetch publications awaiting moderation, most recent request first."""
        return await self.query(
            f"SELECT * FROM c WHERE {_PENDING} AND {_ACTIVE}"
            " ORDER BY c.last_edit_request DESC"
            " OFFSET @offset LIMIT @limit",
            [
                {"name": "@offset", "value": offset},
                {"name": "@limit", "value": limit},
            ],
        )

    async def count_pending_updates(self) -> int:
        """Return how many publications carry a pending proposal."""
        return await self.count(
            f"SELECT VALUE COUNT(1) FROM c WHERE {_PENDING} AND {_ACTIVE}",
        )

    @staticmethod
    def _filters(
        tag: str | None, publicado: bool | None, categoria: str | None
    ) -> tuple[str, list[dict[str, Any]]]:
        clauses = [_ACTIVE]
        params: list[dict[str, Any]] = []
        if tag:
            clauses.append("c.tag = @tag")
            params.append({"name": "@tag", "value": tag})
        if publicado is not None:
            clauses.append("c.publicado = @publicado")
            params.append({"name": "@publicado", "value": publicado})
        if categoria:
            clauses.append("c.categoria = @categoria")
            params.append({"name": "@categoria", "value": categoria})
        return " AND ".join(clauses), params

    async def list_filtered(
        self,
        *,
        tag: str | None = None,
        publicado: bool | None = None,
        categoria: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> list[Publication]:
        """Fetch a page of publications, newest first."""
        where, params = self._filters(tag, publicado, categoria)
        return await self.query(
            f"SELECT * FROM c WHERE {where}"
            " ORDER BY c.created_at DESC"
            " OFFSET @offset LIMIT @limit",
            [
                *params,
                {"name": "@offset", "value": offset},
                {"name": "@limit", "value": limit},
            ],
        )

    async def count_filtered(
        self,
        *,
        tag: str | None = None,
        publicado: bool | None = None,
        categoria: str | None = None,
    ) -> int:
        """Count publications matching the listing filters."""
        where, params = self._filters(tag, publicado, categoria)
        return await self.count(f"SELECT VALUE COUNT(1) FROM c WHERE {where}", params)

    async def save_if_unchanged(self, publication: Publication) -> Publication:
        """Replace the document only if nobody wrote it since it was read."""
        return await self.update(publication, publication.id, if_match=True)

    async def count_attachment_references(self, key: str) -> int:
        """Count publications whose live or proposed images reference ``key``."""
        return await self.count(
            "SELECT VALUE COUNT(1) FROM c WHERE"
            " EXISTS(SELECT VALUE a FROM a IN c.adjunto WHERE a.key = @key)"
            " OR (IS_DEFINED(c.pending_update.adjunto) AND"
            " EXISTS(SELECT VALUE p FROM p IN c.pending_update.adjunto"
            " WHERE p.key = @key))",
            [{"name": "@key", "value": key}],
        )
