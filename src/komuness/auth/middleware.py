"""Authentication dependencies — read the acting user from the signed session."""

from __future__ import annotations

from typing import Any

from fastapi import Request

from komuness.auth.roles import is_admin
from komuness.errors import ForbiddenError, UnauthenticatedError


def get_user(request: Request) -> dict[str, Any] | None:
    """Extract the authenticated user from the session, if present."""
    return request.session.get("user") if hasattr(request, "session") else None


def require_authenticated_user(request: Request) -> dict[str, Any]:
    """Return the authenticated user or raise UnauthenticatedError (401)."""
    user = get_user(request)
    if not user or not user.get("id"):
        raise UnauthenticatedError
    return user


def require_admin(request: Request) -> dict[str, Any]:
    """Return the authenticated user when they are an admin, else 403."""
    user = require_authenticated_user(request)
    if not is_admin(user):
        raise ForbiddenError("Admin privileges required")
    return user
