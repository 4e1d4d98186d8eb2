"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import EmailStr, Field

from app.schemas.base import ApiModel


class LoginRequest(ApiModel):
    """Password login. Lengths are checked loosely here so a bad password is a 401, not a 422."""

    login_name: str = Field(..., min_length=1, max_length=255, description="Login name")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class RegisterRequest(ApiModel):
    email: EmailStr
    password: str = Field(..., max_length=128)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    login_name: str = Field(..., min_length=1, max_length=255)
    role_id: int | None = Field(default=None, ge=1)


class OpenIdRequest(ApiModel):
    provider: str = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    login_name: str = Field(..., min_length=1, max_length=255)
    first_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., max_length=128)


class ResetPasswordRequest(ApiModel):
    email: str = Field(..., min_length=1, max_length=255)


class ResetPasswordConfirmRequest(ApiModel):
    reset_token: str = Field(..., min_length=1)
    new_password: str = Field(..., max_length=128)


class RoleSummary(ApiModel):
    id: int
    name: str


class UserSummary(ApiModel):
    """User returned with a session token; permissions are the live codes of the user's role."""

    id: int
    email: str
    first_name: str
    last_name: str
    role_id: int
    role: RoleSummary | None = None
    avatar_id: int | None = None
    permissions: list[str] = Field(default_factory=list)


class AuthResponse(ApiModel):
    message: str
    token: str
    user: UserSummary


class CurrentUser(ApiModel):
    """Authenticated user as resolved by the auth guard for one request."""

    id: int
    email: str
    first_name: str
    last_name: str
    login_name: str | None = None
    auth_type: str | None = None
    role_id: int
    role_name: str | None = None
    avatar_id: int | None = None
    permissions: list[str] = Field(default_factory=list)


class CredentialItem(ApiModel):
    """Active credential of the current user (no hashes)."""

    id: int
    auth_type: str
    login_name: str
    openid_provider: str | None = None
    last_password_change: datetime | None = None
    password_expired: bool
    created_at: datetime | None = None
