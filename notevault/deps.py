"""
FastAPI dependencies for authentication and database access.
"""

from typing import Annotated

from fastapi import Cookie, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.db import get_db
from notevault.errors import AuthenticationError
from notevault.models.user import User

SESSION_COOKIE = "session_token"

# Type alias for database dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]


def _bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


async def get_current_user_optional(
    request: Request,
    db: DBSession,
    session_token: str | None = Cookie(default=None),
) -> User | None:
    """Resolve the caller from a Bearer header or the session cookie.

    Unknown, expired or deactivated sessions are treated as anonymous.
    """
    token = _bearer_token(request) or session_token
    if not token:
        return None

    result = await db.execute(select(User).where(User.session_token == token))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active or not user.is_session_valid():
        return None

    request.state.user_id = user.id
    return user


async def get_current_user(
    user: Annotated[User | None, Depends(get_current_user_optional)],
) -> User:
    """Get current user (raises 401 if not authenticated)."""
    if not user:
        raise AuthenticationError("Not authenticated. Please log in")
    return user


# Type alias for authenticated user dependency
CurrentUser = Annotated[User, Depends(get_current_user)]


def get_request_id(request: Request) -> str:
    """Get or generate request ID for logging."""
    return request.headers.get("X-Request-ID", getattr(request.state, "request_id", ""))
