"""Schemas for user management and profiles."""

from datetime import date, datetime
from uuid import UUID

from pydantic import EmailStr, Field

from app.models import User
from app.schemas.auth import RoleSummary
from app.schemas.base import ApiModel


class UserListItem(ApiModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role_id: int
    role: RoleSummary | None = None
    is_active: bool
    created_at: datetime | None = None


class UsersPage(ApiModel):
    users: list[UserListItem]
    total_pages: int
    current_page: int
    total_items: int


class UserCreateRequest(ApiModel):
    email: EmailStr
    password: str = Field(..., max_length=128)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    role_id: int = Field(..., ge=1)


class UserCreatedResponse(ApiModel):
    message: str
    user: UserListItem


class UserUpdateRequest(ApiModel):
    email: EmailStr | None = None
    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, min_length=1, max_length=255)
    phone_number: str | None = Field(default=None, max_length=64)
    address: str | None = Field(default=None, max_length=1024)
    date_of_birth: date | None = None


class Profile(ApiModel):
    id: int
    email: str
    first_name: str
    last_name: str
    phone_number: str | None = None
    address: str | None = None
    date_of_birth: date | None = None
    is_active: bool
    is_available_for_work: bool
    role_id: int
    role_name: str | None = None
    avatar_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "Profile":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone_number=user.phone_number,
            address=user.address,
            date_of_birth=user.date_of_birth,
            is_active=user.is_active,
            is_available_for_work=user.is_available_for_work,
            role_id=user.role_id,
            role_name=user.role.name if user.role is not None else None,
            avatar_id=user.avatar_id,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class ProfileUpdateRequest(ApiModel):
    """Profile fields a user may edit; roleId is honoured for administrators only."""

    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, min_length=1, max_length=255)
    phone_number: str | None = Field(default=None, max_length=64)
    address: str | None = Field(default=None, max_length=1024)
    date_of_birth: date | None = None
    is_available_for_work: bool | None = None
    role_id: int | None = Field(default=None, ge=1)


class ProfileUpdatedResponse(ApiModel):
    message: str
    profile: Profile


class AvatarResponse(ApiModel):
    id: int
    guid: UUID
    mime_type: str | None = None
    created_on: datetime | None = None
