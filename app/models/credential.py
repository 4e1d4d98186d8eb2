"""ORM model for user authentication credentials (password or OpenID)."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    event,
    func,
)
from sqlalchemy.orm import relationship

from app.core.errors import ValidationError
from app.models.base import Base

AUTH_TYPE_PASSWORD = "password"
AUTH_TYPE_OPENID = "openid"
AUTH_TYPES = (AUTH_TYPE_PASSWORD, AUTH_TYPE_OPENID)


class UserCredential(Base):
    """
    One authentication method bound to a user, independently revocable.

    password: password_hash set, no OpenID provider.
    openid:   openid_provider and openid_subject set, no password_hash.
    The bcrypt hash carries its own salt.
    """

    __tablename__ = "user_credentials"
    __table_args__ = (
        UniqueConstraint("login_name", "auth_type", name="uq_user_credentials_login_name_auth_type"),
        # NULLs compare distinct, so only populated (provider, subject) pairs collide.
        UniqueConstraint(
            "openid_provider",
            "openid_subject",
            name="uq_user_credentials_openid_provider_subject",
        ),
        CheckConstraint(
            "(auth_type = 'password' AND password_hash IS NOT NULL"
            " AND openid_provider IS NULL AND openid_subject IS NULL)"
            " OR (auth_type = 'openid' AND password_hash IS NULL"
            " AND openid_provider IS NOT NULL AND openid_subject IS NOT NULL)",
            name="ck_user_credentials_shape",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    auth_type = Column(String(20), nullable=False)
    login_name = Column(String(255), nullable=False)
    password_hash = Column(String(512), nullable=True)
    last_password_change = Column(DateTime(timezone=True), nullable=True)
    password_expired = Column(Boolean, nullable=False, default=False)
    openid_provider = Column(String(100), nullable=True)
    openid_subject = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="credentials")

    def check_shape(self) -> None:
        """Raise ValidationError unless exactly one of the password/OpenID branches is populated."""
        if self.auth_type == AUTH_TYPE_PASSWORD:
            if not self.password_hash or self.openid_provider or self.openid_subject:
                raise ValidationError(
                    "Password auth type requires password hash and no OpenID provider"
                )
        elif self.auth_type == AUTH_TYPE_OPENID:
            if not self.openid_provider or not self.openid_subject or self.password_hash:
                raise ValidationError(
                    "OpenID auth type requires provider and subject and no password hash"
                )
        else:
            raise ValidationError(f"Unsupported auth type: {self.auth_type!r}")
        if not self.login_name or not self.login_name.strip():
            raise ValidationError("Login name is required")


@event.listens_for(UserCredential, "before_insert")
@event.listens_for(UserCredential, "before_update")
def _check_credential_shape(mapper, connection, target: UserCredential) -> None:
    target.check_shape()
