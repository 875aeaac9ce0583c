"""Domain errors and their translation into JSON HTTP responses."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

if TYPE_CHECKING:
    from fastapi import FastAPI

    from komuness.config import AppConfig

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Internal server error — contact the administrator"
INVALID_DATA_MESSAGE = "Invalid data"


class KomunessError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(KomunessError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(KomunessError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action"


class NotFoundError(KomunessError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Publication not found"


class EditLimitExceededError(KomunessError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Edit limit reached for this publication"


class PendingUpdateConflictError(KomunessError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "An edit request is already pending approval"


class NoChangesError(KomunessError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "No changes detected in the publication"


class InvalidPublicationError(KomunessError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid publication data"


def register_error_handlers(app: FastAPI, config: AppConfig) -> None:
    """Install handlers that render every failure as ``{"message": ...}``."""

    @app.exception_handler(KomunessError)
    async def handle_domain_error(request: Request, exc: KomunessError) -> JSONResponse:
        logger.info(
            "Request rejected — path=%s status=%d error=%s",
            request.url.path,
            exc.status_code,
            type(exc).__name__,
        )
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        logger.info(
            "Malformed request — path=%s errors=%d", request.url.path, len(errors)
        )
        content: dict[str, object] = {"message": INVALID_DATA_MESSAGE}
        if not config.is_production:
            content["details"] = [
                {"type": e.get("type"), "loc": list(e.get("loc", ())), "msg": e.get("msg")}
                for e in errors
            ]
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        logger.warning(
            "Document validation failed — path=%s errors=%d",
            request.url.path,
            exc.error_count(),
        )
        content: dict[str, object] = {"message": INVALID_DATA_MESSAGE}
        if not config.is_production:
            content["details"] = exc.errors(
                include_url=False, include_input=False, include_context=False
            )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error — path=%s", request.url.path)
        content: dict[str, object] = {"message": GENERIC_MESSAGE}
        if not config.is_production:
            content["error"] = str(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
        )
