"""Role and role-permission management."""

import logging
from dataclasses import dataclass, field

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, PermissionNotFound, RoleNotFound, ValidationError
from app.models import Feature, Permission, PermissionAction, Role
from app.repositories import RoleRepository, UserRepository
from app.services.permissions import DEFAULT_PERMISSIONS

logger = logging.getLogger(__name__)


@dataclass
class PermissionGrant:
    """A permission to attach to a role, found or created by code."""

    code: str
    feature_id: int
    permission_action_id: int


@dataclass
class GrantResult:
    created_permissions: list[Permission] = field(default_factory=list)
    existing_permissions: list[Permission] = field(default_factory=list)


def _commit(db: Session, conflict_message: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(conflict_message) from e


def get_role(db: Session, role_id: int) -> Role:
    role = RoleRepository(db).get_with_permissions(role_id)
    if role is None:
        raise RoleNotFound("Role not found")
    return role


def list_roles(db: Session) -> list[Role]:
    return RoleRepository(db).list_with_permissions()


def _permissions_by_id(repo: RoleRepository, permission_ids: list[int]) -> list[Permission]:
    wanted = set(permission_ids)
    found = repo.get_permissions(list(wanted))
    missing = wanted - {p.id for p in found}
    if missing:
        raise PermissionNotFound(f"Permission not found: {sorted(missing)}")
    return found


def create_role(
    db: Session,
    name: str,
    description: str | None = None,
    permission_ids: list[int] | None = None,
) -> Role:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Role name is required")
    repo = RoleRepository(db)
    if repo.get_by_name(name) is not None:
        raise ConflictError("Role name already in use")
    try:
        role = repo.add(Role(name=name, description=description))
        if permission_ids:
            role.permissions = _permissions_by_id(repo, permission_ids)
        _commit(db, "Role name already in use")
    except Exception:
        db.rollback()
        raise
    logger.info("Role created", extra={"role_id": role.id, "role_name": role.name})
    return get_role(db, role.id)


def update_role(
    db: Session,
    role_id: int,
    name: str | None = None,
    description: str | None = None,
    permission_ids: list[int] | None = None,
) -> Role:
    """Update name/description; when permission_ids is given it replaces the role's whole set."""
    repo = RoleRepository(db)
    role = repo.get_with_permissions(role_id)
    if role is None:
        raise RoleNotFound("Role not found")
    try:
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Role name must not be empty")
            other = repo.get_by_name(name)
            if other is not None and other.id != role.id:
                raise ConflictError("Role name already in use")
            role.name = name
        if description is not None:
            role.description = description
        if permission_ids is not None:
            role.permissions = _permissions_by_id(repo, permission_ids)
        _commit(db, "Role name already in use")
    except Exception:
        db.rollback()
        raise
    db.refresh(role)
    return get_role(db, role_id)


def delete_role(db: Session, role_id: int) -> None:
    repo = RoleRepository(db)
    role = repo.get(role_id)
    if role is None:
        raise RoleNotFound("Role not found")
    if UserRepository(db).count_with_role(role_id) > 0:
        raise ConflictError(
            "Cannot delete role that has users assigned. Reassign users to another role first."
        )
    role.permissions = []
    repo.delete(role)
    db.commit()
    logger.info("Role deleted", extra={"role_id": role_id})


def list_role_permissions(db: Session, role_id: int) -> list[Permission]:
    return list(get_role(db, role_id).permissions)


def grant_permissions(db: Session, role_id: int, grants: list[PermissionGrant]) -> GrantResult:
    """
    Attach permissions to a role by code in one transaction.

    Codes already on the role are reported as existing. Other codes are found
    or created (against the given feature and action) and linked.
    """
    if not grants:
        raise ValidationError("Permissions array is required")
    repo = RoleRepository(db)
    role = repo.get_with_permissions(role_id)
    if role is None:
        raise RoleNotFound("Role not found")
    result = GrantResult()
    try:
        on_role = {p.code: p for p in role.permissions}
        for grant in grants:
            if grant.code in on_role:
                result.existing_permissions.append(on_role[grant.code])
                continue
            permission = repo.get_permission_by_code(grant.code)
            if permission is None:
                if repo.get_feature(grant.feature_id) is None:
                    raise ValidationError(f"Unknown feature id {grant.feature_id}")
                if repo.get_action(grant.permission_action_id) is None:
                    raise ValidationError(f"Unknown permission action id {grant.permission_action_id}")
                permission = repo.add_permission(
                    Permission(
                        code=grant.code,
                        feature_id=grant.feature_id,
                        permission_action_id=grant.permission_action_id,
                    )
                )
            role.permissions.append(permission)
            on_role[permission.code] = permission
            result.created_permissions.append(permission)
        _commit(db, "Permission code already in use")
    except Exception:
        db.rollback()
        raise
    logger.info(
        "Role permissions granted",
        extra={"role_id": role_id, "granted": [p.code for p in result.created_permissions]},
    )
    return result


def revoke_permission(db: Session, role_id: int, permission_id: int) -> None:
    repo = RoleRepository(db)
    role = repo.get_with_permissions(role_id)
    if role is None:
        raise RoleNotFound("Role not found")
    permission = repo.get_permission(permission_id)
    if permission is None:
        raise PermissionNotFound("Permission not found")
    if permission in role.permissions:
        role.permissions.remove(permission)
    db.commit()
    logger.info("Role permission revoked", extra={"role_id": role_id, "permission_code": permission.code})


def list_permissions(db: Session) -> list[Permission]:
    return RoleRepository(db).list_permissions()


def seed_defaults(db: Session, admin_role_id: int, default_role_id: int) -> Role:
    """
    Idempotently create the Admin and User roles, the default features, actions
    and permissions, and give Admin every default permission. Returns the admin role.
    """
    repo = RoleRepository(db)
    admin = repo.get(admin_role_id) or repo.add(Role(id=admin_role_id, name="Admin", description="Full access"))
    if repo.get(default_role_id) is None:
        repo.add(Role(id=default_role_id, name="User", description="Default role for new accounts"))

    for code, (feature_code, action_code) in DEFAULT_PERMISSIONS.items():
        feature = repo.get_feature_by_code(feature_code) or repo.add_feature(Feature(code=feature_code))
        action = repo.get_action_by_code(action_code) or repo.add_action(PermissionAction(code=action_code))
        permission = repo.get_permission_by_code(code) or repo.add_permission(
            Permission(code=code, feature_id=feature.id, permission_action_id=action.id)
        )
        if permission not in admin.permissions:
            admin.permissions.append(permission)
    if db.get_bind().dialect.name == "postgresql":
        # Explicit ids do not advance the serial sequence.
        db.execute(text("SELECT setval(pg_get_serial_sequence('roles', 'id'), (SELECT MAX(id) FROM roles))"))
    db.commit()
    return admin
