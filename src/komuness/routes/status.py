"""Status route — dependency health checks."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from komuness.services.health import check_all

router = APIRouter(tags=["status"])


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Report the health of Cosmos DB and blob storage."""
    cosmos = request.app.state.cosmos
    storage = request.app.state.storage
    checks: list[dict[str, Any]] = await check_all(cosmos.database, storage)
    healthy = all(check["healthy"] for check in checks)
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", "checks": checks},
    )
