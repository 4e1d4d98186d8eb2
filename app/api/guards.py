"""Auth guard and permission/ownership gates, wired as FastAPI dependencies.

Chain per request: get_current_user (token -> live user, role and permission
codes) -> require_permissions / owner_guard -> handler. The guard only reads.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import ForbiddenError, UserNotFound
from app.core.security import decode_session_token
from app.repositories import UserRepository
from app.schemas.auth import CurrentUser
from app.services.permissions import resolve_permissions

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

OwnerResolver = Callable[[Request, Session], Awaitable[int | None] | int | None]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer session token and return the live user.

    401 without a token; 403 for an invalid or expired token (InvalidToken /
    ExpiredToken) and for a user that is gone, inactive or deleted since the
    token was issued. Permissions come from the role as it is now, not from the token.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    claims = decode_session_token(credentials.credentials)
    user = UserRepository(db).get_live(claims["userId"])
    if user is None:
        raise UserNotFound("User not found or inactive", status_code=status.HTTP_403_FORBIDDEN)
    return CurrentUser(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        login_name=claims.get("loginName"),
        auth_type=claims.get("authType"),
        role_id=user.role_id,
        role_name=user.role.name if user.role is not None else None,
        avatar_id=user.avatar_id,
        permissions=resolve_permissions(db, user.role_id),
    )


def require_permissions(*codes: str) -> Callable[..., CurrentUser]:
    """Dependency factory: the current user's role must hold every one of codes (403 otherwise)."""

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        granted = set(current_user.permissions)
        if not all(code in granted for code in codes):
            raise ForbiddenError(
                "You do not have the required permissions to access this resource"
            )
        return current_user

    return dependency


def owner_guard(resolve_owner_id: OwnerResolver) -> Callable[..., Awaitable[CurrentUser]]:
    """
    Dependency factory: allow the owner of the target resource, or the admin role.

    resolve_owner_id(request, db) returns the owning user id (None when there is
    no such resource); it may be a coroutine function or a plain function, which
    runs in the thread pool. Any error it raises becomes a 500.
    """

    async def dependency(
        request: Request,
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
        db: Annotated[Session, Depends(get_db)],
    ) -> CurrentUser:
        try:
            if inspect.iscoroutinefunction(resolve_owner_id):
                owner_id = await resolve_owner_id(request, db)
            else:
                owner_id = await run_in_threadpool(resolve_owner_id, request, db)
        except Exception as e:
            logger.exception("Owner guard error")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error determining resource ownership",
            ) from e
        if owner_id == current_user.id or current_user.role_id == get_settings().ADMIN_ROLE_ID:
            return current_user
        raise ForbiddenError("You do not have permission to access this resource")

    return dependency
