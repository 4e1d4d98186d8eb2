"""ORM model for application users."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class User(Base):
    """
    Identity record. Authentication lives in UserCredential rows; a user holds one
    or more credentials and exactly one role.

    Users are soft-deleted (is_deleted=True, is_active=False) and never hard-deleted.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    phone_number = Column(String(64), nullable=True)
    address = Column(String(1024), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    is_available_for_work = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    role = relationship("Role", back_populates="users")
    credentials = relationship("UserCredential", back_populates="user")
    avatar = relationship("UserAvatar", back_populates="user", uselist=False)

    @property
    def avatar_id(self) -> int | None:
        return self.avatar.id if self.avatar is not None else None
