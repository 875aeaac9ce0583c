"""Tests for dependency health checks."""

from unittest.mock import AsyncMock, MagicMock, PropertyMock

from komuness.services.health import check_all


async def test_all_healthy() -> None:
    database = MagicMock()
    database.read = AsyncMock(return_value={})
    storage = MagicMock()
    storage.container.get_container_properties = AsyncMock(return_value={})

    results = await check_all(database, storage)

    assert [r["name"] for r in results] == ["cosmos", "storage"]
    assert all(r["healthy"] for r in results)
    assert all("latency_ms" in r for r in results)


async def test_failure_reports_error_type() -> None:
    database = MagicMock()
    database.read = AsyncMock(side_effect=ConnectionError("down"))
    storage = MagicMock()
    type(storage).container = PropertyMock(side_effect=RuntimeError("not initialized"))

    cosmos, blob = await check_all(database, storage)

    assert cosmos == {"name": "cosmos", "healthy": False, "error": "ConnectionError"}
    assert blob == {"name": "storage", "healthy": False, "error": "RuntimeError"}
