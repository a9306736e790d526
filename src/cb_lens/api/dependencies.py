"""Request-scoped dependencies shared by the routers."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID
from zoneinfo import ZoneInfo

from fastapi import Header, HTTPException, Request, status

from cb_lens.domain.context import UserContext

if TYPE_CHECKING:
    from cb_lens.containers import AppContainer


def get_container(request: Request) -> AppContainer:
    """Return the container attached to the app."""
    return request.app.state.container


def get_user_context(
    request: Request,
    x_user_id: str | None = Header(default=None),
    x_timezone: str | None = Header(default=None),
) -> UserContext:
    """Build the caller's context from identification headers."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-Id header is required",
        )
    try:
        user_id = UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-Id must be a UUID",
        ) from exc
    timezone_name = x_timezone or get_container(request).settings.default_timezone
    if not _is_valid_timezone(timezone_name):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown timezone: {timezone_name}",
        )
    return UserContext(user_id=user_id, timezone_name=timezone_name)


def _is_valid_timezone(value: str) -> bool:
    try:
        ZoneInfo(value)
    except Exception:
        return False
    return True
