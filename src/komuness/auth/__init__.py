"""Authentication module — session-backed user identity and roles."""

from komuness.auth.middleware import get_user, require_admin, require_authenticated_user
from komuness.auth.roles import is_admin

__all__ = ["get_user", "is_admin", "require_admin", "require_authenticated_user"]
