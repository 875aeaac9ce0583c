"""FastAPI application factory and process entry point."""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from komuness.config import load_settings
from komuness.errors import register_error_handlers
from komuness.events import ServiceBusPublisher
from komuness.logging import configure_logging
from komuness.routes import files, publications, status
from komuness.startup import init_database, init_reconciler, init_storage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open shared clients on startup and close them on shutdown."""
    settings = app.state.settings
    cosmos = await init_database(settings)
    storage = await init_storage(settings, cosmos)
    publisher = ServiceBusPublisher(settings.servicebus)
    reconciler = init_reconciler(settings, cosmos, storage)
    await reconciler.start()

    app.state.cosmos = cosmos
    app.state.storage = storage
    app.state.event_publisher = publisher
    app.state.reconciler = reconciler
    logger.info("Komuness API started — env=%s", settings.app.env)
    try:
        yield
    finally:
        await reconciler.stop()
        await publisher.close()
        await storage.close()
        await cosmos.close()
        logger.info("Komuness API shutdown complete")


def _session_secret(secret_key: str, *, is_production: bool) -> str:
    if secret_key:
        return secret_key
    if is_production:
        raise RuntimeError("APP_SECRET_KEY must be set in production")
    logger.warning("APP_SECRET_KEY is not set — using an ephemeral session key")
    return secrets.token_urlsafe(32)


def create_app() -> FastAPI:
    """Build the API application."""
    settings = load_settings()
    configure_logging(settings.app.log_level)

    app = FastAPI(title="Komuness API", lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(
        SessionMiddleware,
        secret_key=_session_secret(
            settings.app.secret_key, is_production=settings.app.is_production
        ),
        https_only=settings.app.is_production,
    )
    register_error_handlers(app, settings.app)

    app.include_router(publications.router, prefix="/api")
    app.include_router(files.router, prefix="/api")
    app.include_router(status.router)
    app.include_router(status.router, prefix="/api")
    return app


def main() -> None:
    """Run the API with uvicorn."""
    uvicorn.run("komuness.app:create_app", factory=True, host="0.0.0.0", port=8000)  # noqa: S104


if __name__ == "__main__":
    main()
