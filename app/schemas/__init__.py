"""Pydantic request/response schemas. Field names are camelCase on the wire."""

from app.schemas.auth import (
    AuthResponse,
    CredentialItem,
    CurrentUser,
    LoginRequest,
    RegisterRequest,
)
from app.schemas.base import ApiModel, MessageResponse
from app.schemas.health import HealthResponse
from app.schemas.role import PermissionItem, RoleItem
from app.schemas.user import Profile, UserListItem, UsersPage

__all__ = [
    "ApiModel",
    "AuthResponse",
    "CredentialItem",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "PermissionItem",
    "Profile",
    "RegisterRequest",
    "RoleItem",
    "UserListItem",
    "UsersPage",
]
