"""
API dependencies for authentication and database access.
These functions are used with FastAPI's Depends() for dependency injection.
"""
import asyncio
from typing import Awaitable, Optional, TypeVar

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError as PydanticValidationError

from flowboard.core.config import settings
from flowboard.core.errors import AuthenticationError, AuthorizationError, QueryTimeoutError
from flowboard.core.security import decode_access_token
from flowboard.schemas.auth import Principal

T = TypeVar("T")

# HTTP Bearer token scheme for Swagger docs; missing headers are reported as 401 below
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """
    Dependency to get the tenant context from the JWT bearer token.

    Args:
        credentials: HTTP Bearer credentials from Authorization header

    Returns:
        Principal: user id, company id and role claimed by the token

    Raises:
        AuthenticationError: missing, invalid or expired token
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    try:
        return Principal(
            user_id=str(payload["sub"]),
            company_id=str(payload["company_id"]),
            role=payload.get("role", "user"),
        )
    except (KeyError, PydanticValidationError):
        raise AuthenticationError()


def require_admin(action: str):
    """
    Dependency factory for admin-only routes.

    Usage:
        principal: Principal = Depends(require_admin("create widgets"))
    """
    async def check_admin(current_user: Principal = Depends(get_current_user)) -> Principal:
        if not current_user.is_admin:
            raise AuthorizationError(f"Only admins can {action}")
        return current_user

    return check_admin


async def with_timeout(operation: Awaitable[T]) -> T:
    """Run a resolver call under the per-request time budget."""
    try:
        return await asyncio.wait_for(operation, timeout=settings.REQUEST_TIMEOUT_SECONDS)
    except asyncio.TimeoutError as e:
        raise QueryTimeoutError() from e
