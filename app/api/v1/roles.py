"""Role and role-permission endpoints. Reads need a session; writes need MANAGE_ROLES."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.guards import get_current_user, require_permissions
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.base import MessageResponse
from app.schemas.role import (
    GrantPermissionsRequest,
    GrantPermissionsResponse,
    PermissionItem,
    RoleCreateRequest,
    RoleItem,
    RoleMutationResponse,
    RoleUpdateRequest,
)
from app.services import roles as role_service
from app.services.permissions import MANAGE_ROLES

router = APIRouter()


@router.get("", response_model=list[RoleItem])
def list_roles(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[RoleItem]:
    return [RoleItem.model_validate(r) for r in role_service.list_roles(db)]


@router.get("/{role_id}", response_model=RoleItem)
def get_role(
    role_id: int,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleItem:
    return RoleItem.model_validate(role_service.get_role(db, role_id))


@router.post("", response_model=RoleMutationResponse, status_code=status.HTTP_201_CREATED)
def create_role(
    body: RoleCreateRequest,
    _user: Annotated[CurrentUser, Depends(require_permissions(MANAGE_ROLES))],
    db: Annotated[Session, Depends(get_db)],
) -> RoleMutationResponse:
    role = role_service.create_role(db, body.name, body.description, body.permission_ids)
    return RoleMutationResponse(message="Role created successfully", role=RoleItem.model_validate(role))


@router.put("/{role_id}", response_model=RoleMutationResponse)
def update_role(
    role_id: int,
    body: RoleUpdateRequest,
    _user: Annotated[CurrentUser, Depends(require_permissions(MANAGE_ROLES))],
    db: Annotated[Session, Depends(get_db)],
) -> RoleMutationResponse:
    """Update a role. permissionIds, when sent, replaces the role's permission set; takes effect on the next request of every holder."""
    role = role_service.update_role(db, role_id, body.name, body.description, body.permission_ids)
    return RoleMutationResponse(message="Role updated successfully", role=RoleItem.model_validate(role))


@router.delete("/{role_id}", response_model=MessageResponse)
def delete_role(
    role_id: int,
    _user: Annotated[CurrentUser, Depends(require_permissions(MANAGE_ROLES))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete a role. 409 while users are still assigned to it."""
    role_service.delete_role(db, role_id)
    return MessageResponse(message="Role deleted successfully")


@router.get("/{role_id}/permissions", response_model=list[PermissionItem])
def list_role_permissions(
    role_id: int,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[PermissionItem]:
    return [PermissionItem.model_validate(p) for p in role_service.list_role_permissions(db, role_id)]


@router.post("/{role_id}/permissions", response_model=GrantPermissionsResponse)
def grant_permissions(
    role_id: int,
    body: GrantPermissionsRequest,
    _user: Annotated[CurrentUser, Depends(require_permissions(MANAGE_ROLES))],
    db: Annotated[Session, Depends(get_db)],
) -> GrantPermissionsResponse:
    """Attach permissions by code, creating unknown codes under the given feature and action."""
    result = role_service.grant_permissions(
        db,
        role_id,
        [
            role_service.PermissionGrant(
                code=p.code,
                feature_id=p.feature_id,
                permission_action_id=p.permission_action_id,
            )
            for p in body.permissions
        ],
    )
    return GrantPermissionsResponse(
        message="Permissions processed successfully",
        created_permissions=[PermissionItem.model_validate(p) for p in result.created_permissions],
        existing_permissions=[PermissionItem.model_validate(p) for p in result.existing_permissions],
    )


@router.delete("/{role_id}/permissions/{permission_id}", response_model=MessageResponse)
def revoke_permission(
    role_id: int,
    permission_id: int,
    _user: Annotated[CurrentUser, Depends(require_permissions(MANAGE_ROLES))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    role_service.revoke_permission(db, role_id, permission_id)
    return MessageResponse(message="Permission removed successfully")
