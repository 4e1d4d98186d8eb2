"""ORM models for roles, permissions and the role-permission join table."""

import uuid

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Table, Text, Uuid
from sqlalchemy.orm import relationship

from app.models.base import Base

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        Integer,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)


class Role(Base):
    """Named permission bundle; every user has exactly one."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    guid = Column(Uuid, nullable=False, unique=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    permissions = relationship(
        "Permission",
        secondary=role_permissions,
        back_populates="roles",
        order_by="Permission.code",
    )
    users = relationship("User", back_populates="role")


class Feature(Base):
    __tablename__ = "features"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)


class PermissionAction(Base):
    __tablename__ = "permission_actions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)


class Permission(Base):
    """One allowed action, e.g. CREATE_USER, scoped by feature and action. Codes are globally unique."""

    __tablename__ = "permissions"
    __table_args__ = (
        Index("ix_permissions_feature_action", "feature_id", "permission_action_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    object_guid = Column(Uuid, nullable=False, default=uuid.uuid4)
    code = Column(String(101), nullable=False, unique=True)
    feature_id = Column(Integer, ForeignKey("features.id"), nullable=False)
    permission_action_id = Column(Integer, ForeignKey("permission_actions.id"), nullable=True)

    feature = relationship("Feature")
    permission_action = relationship("PermissionAction")
    roles = relationship("Role", secondary=role_permissions, back_populates="permissions")
