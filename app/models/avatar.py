"""ORM model for profile avatar images (one per user)."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, LargeBinary, String, Uuid, func
from sqlalchemy.orm import deferred, relationship

from app.models.base import Base


class UserAvatar(Base):
    __tablename__ = "user_avatars"

    id = Column(Integer, primary_key=True, autoincrement=True)
    guid = Column(Uuid, nullable=False, unique=True, default=uuid.uuid4)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    # Deferred so loading User.avatar for the avatarId claim does not pull the image bytes.
    content = deferred(Column(LargeBinary, nullable=True))
    mime_type = Column(String(100), nullable=True)
    created_on = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="avatar")
