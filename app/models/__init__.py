"""SQLAlchemy ORM models."""

from app.models.avatar import UserAvatar
from app.models.base import Base
from app.models.credential import (
    AUTH_TYPE_OPENID,
    AUTH_TYPE_PASSWORD,
    AUTH_TYPES,
    UserCredential,
)
from app.models.role import Feature, Permission, PermissionAction, Role, role_permissions
from app.models.user import User

__all__ = [
    "AUTH_TYPE_OPENID",
    "AUTH_TYPE_PASSWORD",
    "AUTH_TYPES",
    "Base",
    "Feature",
    "Permission",
    "PermissionAction",
    "Role",
    "User",
    "UserAvatar",
    "UserCredential",
    "role_permissions",
]
