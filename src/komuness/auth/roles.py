"""Role checks on the session user payload."""

from __future__ import annotations

from typing import Any

ADMIN_ROLES = frozenset({"admin", "super-admin"})


def is_admin(user: dict[str, Any]) -> bool:
    return user.get("role") in ADMIN_ROLES
