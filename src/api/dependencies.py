"""FastAPI dependencies for authentication and caller identity."""

import secrets
from dataclasses import dataclass

from fastapi import Header, HTTPException, status

from core.config import CAPACITY_API_KEY, VIEW_ALL_ROLES


@dataclass(frozen=True)
class Viewer:
    """Caller identity as asserted by the authenticating gateway."""

    user_id: int
    role: str

    @property
    def can_view_all(self) -> bool:
        return self.role in VIEW_ALL_ROLES


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Verify API key from X-API-Key header.

    Raises:
        HTTPException: 401 if key is missing or invalid
    """
    if not CAPACITY_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "API key not configured on server",
                "code": "INTERNAL_ERROR",
                "details": [],
            },
        )

    # Use constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(x_api_key, CAPACITY_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing API key",
                "code": "UNAUTHORIZED",
                "details": [],
            },
        )

    return x_api_key


async def get_viewer(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    x_user_role: str | None = Header(None, alias="X-User-Role"),
) -> Viewer:
    """
    Read the caller's id and role from gateway headers.

    Raises:
        HTTPException: 401 if either header is missing or the id is not a positive integer
    """
    if not x_user_id or not x_user_role or not x_user_id.strip().isdigit() or int(x_user_id) < 1:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Missing or invalid caller identity",
                "code": "UNAUTHORIZED",
                "details": ["Expected X-User-Id and X-User-Role headers"],
            },
        )
    return Viewer(user_id=int(x_user_id), role=x_user_role.strip().lower())
