"""Dependency health checks for the status endpoint."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from azure.cosmos.aio import DatabaseProxy

    from komuness.storage.blob import BlobStorage

logger = logging.getLogger(__name__)


async def _check(name: str, check: Callable[[], Awaitable[Any]]) -> dict[str, Any]:
    started_at = time.monotonic()
    try:
        await check()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Health check failed — dependency=%s", name, exc_info=True)
        return {"name": name, "healthy": False, "error": type(exc).__name__}
    return {
        "name": name,
        "healthy": True,
        "latency_ms": round((time.monotonic() - started_at) * 1000),
    }


async def check_all(database: DatabaseProxy, storage: BlobStorage) -> list[dict[str, Any]]:
    """Check Cosmos DB and blob storage concurrently."""
    return list(
        await asyncio.gather(
            _check("cosmos", database.read),
            _check("storage", lambda: storage.container.get_container_properties()),
        )
    )
