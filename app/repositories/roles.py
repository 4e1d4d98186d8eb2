"""Role, Permission, Feature and PermissionAction persistence."""

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.models import Feature, Permission, PermissionAction, Role, role_permissions


class RoleRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, role_id: int) -> Role | None:
        return self.db.get(Role, role_id)

    def get_with_permissions(self, role_id: int) -> Role | None:
        return (
            self.db.query(Role)
            .options(selectinload(Role.permissions))
            .filter(Role.id == role_id)
            .first()
        )

    def get_by_name(self, name: str) -> Role | None:
        return self.db.query(Role).filter(Role.name == name).first()

    def list_with_permissions(self) -> list[Role]:
        return self.db.query(Role).options(selectinload(Role.permissions)).order_by(Role.id).all()

    def add(self, role: Role) -> Role:
        self.db.add(role)
        self.db.flush()
        return role

    def delete(self, role: Role) -> None:
        self.db.delete(role)
        self.db.flush()

    def permission_codes(self, role_id: int) -> list[str]:
        """Distinct permission codes linked to role_id through the join table, sorted."""
        stmt = (
            select(Permission.code)
            .join(role_permissions, role_permissions.c.permission_id == Permission.id)
            .where(role_permissions.c.role_id == role_id)
            .distinct()
            .order_by(Permission.code)
        )
        return list(self.db.scalars(stmt))

    def get_permission(self, permission_id: int) -> Permission | None:
        return self.db.get(Permission, permission_id)

    def get_permission_by_code(self, code: str) -> Permission | None:
        return self.db.query(Permission).filter(Permission.code == code).first()

    def get_permissions(self, permission_ids: list[int]) -> list[Permission]:
        if not permission_ids:
            return []
        return self.db.query(Permission).filter(Permission.id.in_(permission_ids)).all()

    def list_permissions(self) -> list[Permission]:
        return self.db.query(Permission).order_by(Permission.code).all()

    def add_permission(self, permission: Permission) -> Permission:
        self.db.add(permission)
        self.db.flush()
        return permission

    def get_feature(self, feature_id: int) -> Feature | None:
        return self.db.get(Feature, feature_id)

    def get_feature_by_code(self, code: str) -> Feature | None:
        return self.db.query(Feature).filter(Feature.code == code).first()

    def get_action(self, action_id: int) -> PermissionAction | None:
        return self.db.get(PermissionAction, action_id)

    def get_action_by_code(self, code: str) -> PermissionAction | None:
        return self.db.query(PermissionAction).filter(PermissionAction.code == code).first()

    def add_feature(self, feature: Feature) -> Feature:
        self.db.add(feature)
        self.db.flush()
        return feature

    def add_action(self, action: PermissionAction) -> PermissionAction:
        self.db.add(action)
        self.db.flush()
        return action
