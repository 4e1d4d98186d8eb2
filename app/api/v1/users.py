"""User administration endpoints, each behind its own permission code."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.guards import require_permissions
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.base import MessageResponse
from app.schemas.user import (
    UserCreatedResponse,
    UserCreateRequest,
    UserListItem,
    UsersPage,
    UserUpdateRequest,
)
from app.services import auth as auth_service
from app.services import users as user_service
from app.services.permissions import CREATE_USER, DELETE_USER, LIST_USERS, UPDATE_USER

router = APIRouter()


@router.get("", response_model=UsersPage)
def list_users(
    _user: Annotated[CurrentUser, Depends(require_permissions(LIST_USERS))],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    search: Annotated[str, Query(max_length=255)] = "",
) -> UsersPage:
    """Active users, newest first. search matches email, first and last name."""
    users, total, total_pages = user_service.list_users(db, page, limit, search)
    return UsersPage(
        users=[UserListItem.model_validate(u) for u in users],
        total_pages=total_pages,
        current_page=page,
        total_items=total,
    )


@router.get("/{user_id}", response_model=UserListItem)
def get_user(
    user_id: int,
    _user: Annotated[CurrentUser, Depends(require_permissions(LIST_USERS))],
    db: Annotated[Session, Depends(get_db)],
) -> UserListItem:
    return UserListItem.model_validate(user_service.get_user(db, user_id))


@router.post("", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreateRequest,
    _user: Annotated[CurrentUser, Depends(require_permissions(CREATE_USER))],
    db: Annotated[Session, Depends(get_db)],
) -> UserCreatedResponse:
    """Create a user with a password credential whose login name is the email."""
    result = auth_service.register(
        db,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        login_name=body.email,
        role_id=body.role_id,
    )
    return UserCreatedResponse(
        message="User created successfully",
        user=UserListItem.model_validate(result.user),
    )


@router.put("/{user_id}", response_model=UserListItem)
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    _user: Annotated[CurrentUser, Depends(require_permissions(UPDATE_USER))],
    db: Annotated[Session, Depends(get_db)],
) -> UserListItem:
    user = user_service.update_user(db, user_id, body.model_dump(exclude_unset=True))
    return UserListItem.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    _user: Annotated[CurrentUser, Depends(require_permissions(DELETE_USER))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Soft-delete: the user's existing tokens stop working on their next request."""
    user_service.delete_user(db, user_id)
    return MessageResponse(message="User deleted successfully")
