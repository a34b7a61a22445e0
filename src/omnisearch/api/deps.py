"""API dependencies — Dependency injection for FastAPI endpoints."""

from __future__ import annotations

from fastapi import Header, HTTPException, status

from omnisearch.core.coordinator import SearchCoordinator
from omnisearch.models.context import PermissionContext
from omnisearch.ratelimit.limiter import SearchRateLimiter

# Global instances (set during application lifespan)
_coordinator: SearchCoordinator | None = None
_rate_limiter: SearchRateLimiter | None = None


def set_coordinator(coordinator: SearchCoordinator | None) -> None:
    """Set the global coordinator instance (called during app lifespan)."""
    global _coordinator
    _coordinator = coordinator


def get_coordinator() -> SearchCoordinator:
    """Get the global search coordinator.

    Raises:
        RuntimeError: If the coordinator is not initialized.
    """
    if _coordinator is None:
        raise RuntimeError("Search coordinator not initialized. Is the server running?")
    return _coordinator


def set_rate_limiter(limiter: SearchRateLimiter | None) -> None:
    """Set the global rate limiter instance (called during app lifespan)."""
    global _rate_limiter
    _rate_limiter = limiter


def get_rate_limiter() -> SearchRateLimiter:
    """Get the global search rate limiter.

    Raises:
        RuntimeError: If the rate limiter is not initialized.
    """
    if _rate_limiter is None:
        raise RuntimeError("Search rate limiter not initialized. Is the server running?")
    return _rate_limiter


def get_permission_context(
    x_user_id: str | None = Header(default=None, description="Authenticated user id, set by the auth gateway"),
    x_user_role: str | None = Header(default=None, description="Role of the authenticated user"),
    x_user_permissions: str | None = Header(default=None, description="Comma-separated permission names"),
) -> PermissionContext:
    """Build the caller's ``PermissionContext`` from gateway headers.

    Raises:
        HTTPException: 401 if no user id was forwarded.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    permissions = frozenset(p.strip() for p in (x_user_permissions or "").split(",") if p.strip())
    return PermissionContext(
        user_id=user_id,
        role=(x_user_role or "USER").strip().upper() or "USER",
        permissions=permissions,
    )
