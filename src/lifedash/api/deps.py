"""FastAPI dependency injection for caller identity, database and HTTP."""

from typing import Annotated
from uuid import UUID

import httpx
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.core.exceptions import AuthenticationError
from lifedash.core.security import verify_api_key
from lifedash.db.session import get_db
from lifedash.models.user import User
from lifedash.repositories.user import UserRepository


async def get_user_repository(
    db: AsyncSession = Depends(get_db),
) -> UserRepository:
    """
    Get user repository instance.

    Args:
        db: Database session

    Returns:
        UserRepository instance
    """
    return UserRepository(db)


async def require_api_key(
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """
    Reject the request unless ``x-api-key`` matches the shared secret.

    Raises:
        AuthenticationError: AUTH_001 (401) on a missing or wrong key
    """
    if not verify_api_key(x_api_key):
        raise AuthenticationError("AUTH_001")


async def get_current_user(
    x_user_id: Annotated[UUID, Header()],
    _: None = Depends(require_api_key),
    user_repo: UserRepository = Depends(get_user_repository),
) -> User:
    """
    Resolve the ``x-user-id`` header to an active user.

    A missing or malformed header fails request validation (400) before
    this runs.

    Args:
        x_user_id: Caller's user id
        user_repo: User repository for database queries

    Returns:
        The user every downstream write is scoped to

    Raises:
        AuthenticationError: AUTH_002 (401) if the user does not exist or is inactive
    """
    user = await user_repo.get_by_id(x_user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("AUTH_002", details={"user_id": str(x_user_id)})
    return user


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared outbound HTTP client created in the app lifespan."""
    return request.app.state.http_client
