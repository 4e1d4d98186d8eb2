"""Schemas for roles and permissions."""

from pydantic import Field

from app.schemas.base import ApiModel


class PermissionItem(ApiModel):
    id: int
    code: str
    feature_id: int
    permission_action_id: int | None = None


class RoleItem(ApiModel):
    id: int
    name: str
    description: str | None = None
    permissions: list[PermissionItem] = Field(default_factory=list)


class RoleCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    permission_ids: list[int] | None = None


class RoleUpdateRequest(ApiModel):
    """Omitted fields are left unchanged; permissionIds, when present, replaces the whole set."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    permission_ids: list[int] | None = None


class RoleMutationResponse(ApiModel):
    message: str
    role: RoleItem


class PermissionGrantItem(ApiModel):
    code: str = Field(..., min_length=1, max_length=101)
    feature_id: int = Field(..., ge=1)
    permission_action_id: int = Field(..., ge=1)


class GrantPermissionsRequest(ApiModel):
    permissions: list[PermissionGrantItem] = Field(..., min_length=1)


class GrantPermissionsResponse(ApiModel):
    message: str
    created_permissions: list[PermissionItem]
    existing_permissions: list[PermissionItem]
