"""Tests for the status route."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

from komuness.routes.status import health


class TestStatusRoute:
    """Test the Status Route."""

    async def test_healthy(self) -> None:
        """Verify a 200 with every check when all dependencies respond."""
        request = MagicMock()
        mock_results = [
            {"name": "cosmos", "healthy": True, "latency_ms": 3},
            {"name": "storage", "healthy": True, "latency_ms": 5},
        ]

        with patch(
            "komuness.routes.status.check_all",
            new_callable=AsyncMock,
            return_value=mock_results,
        ) as check_all:
            response = await health(request)

        check_all.assert_awaited_once_with(
            request.app.state.cosmos.database, request.app.state.storage
        )
        assert response.status_code == 200
        assert json.loads(response.body) == {"status": "ok", "checks": mock_results}

    async def test_degraded(self) -> None:
        """Verify a 503 when any dependency fails."""
        request = MagicMock()
        mock_results = [
            {"name": "cosmos", "healthy": False, "error": "ConnectionError"},
            {"name": "storage", "healthy": True, "latency_ms": 5},
        ]

        with patch(
            "komuness.routes.status.check_all",
            new_callable=AsyncMock,
            return_value=mock_results,
        ):
            response = await health(request)

        assert response.status_code == 503
        assert json.loads(response.body)["status"] == "degraded"
