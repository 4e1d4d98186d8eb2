"""User administration, profiles and avatars."""

import logging
import math
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ForbiddenError, UserNotFound, ValidationError
from app.models import User, UserAvatar
from app.repositories import CredentialRepository, RoleRepository, UserRepository

logger = logging.getLogger(__name__)

# Fields an owner may change on their own profile; role_id needs the admin role.
PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "phone_number",
    "address",
    "date_of_birth",
    "is_available_for_work",
)
USER_FIELDS = ("email", "first_name", "last_name", "phone_number", "address", "date_of_birth")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Email already in use") from e


def get_user(db: Session, user_id: int) -> User:
    user = UserRepository(db).get(user_id)
    if user is None or user.is_deleted:
        raise UserNotFound("User not found")
    return user


def list_users(db: Session, page: int, limit: int, search: str = "") -> tuple[list[User], int, int]:
    """Return (users, total_items, total_pages) for a 1-based page."""
    users, total = UserRepository(db).search(search, offset=(page - 1) * limit, limit=limit)
    return users, total, math.ceil(total / limit) if limit else 0


def _follow_email_change(db: Session, user: User, new_email: str) -> None:
    """Credentials whose login name is the old email (as created by POST /users) move to the new one."""
    repo = CredentialRepository(db)
    for credential in repo.list_active_for_user(user.id):
        if credential.login_name.lower() != user.email:
            continue
        taken = repo.get_by_login(new_email, credential.auth_type)
        if taken is not None and taken.id != credential.id:
            raise ConflictError("Login name already in use")
        credential.login_name = new_email


def update_user(db: Session, user_id: int, changes: dict[str, Any]) -> User:
    user = get_user(db, user_id)
    repo = UserRepository(db)
    if "email" in changes and changes["email"] is not None:
        email = changes["email"].strip().lower()
        other = repo.get_by_email(email)
        if other is not None and other.id != user.id:
            raise ConflictError("Email already in use")
        if email != user.email:
            _follow_email_change(db, user, email)
        changes["email"] = email
    for name in USER_FIELDS:
        if changes.get(name) is not None:
            setattr(user, name, changes[name])
    _commit(db)
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int) -> None:
    user = get_user(db, user_id)
    UserRepository(db).soft_delete(user)
    db.commit()
    logger.info("User soft-deleted", extra={"user_id": user_id})


def list_profiles(db: Session) -> list[User]:
    return UserRepository(db).list_not_deleted()


def get_profile_by_email(db: Session, email: str) -> User:
    user = UserRepository(db).get_by_email(email, include_deleted=False)
    if user is None:
        raise UserNotFound("Profile not found")
    return user


def profile_owner_id(db: Session, email: str) -> int | None:
    """Owner user id of the profile with this email, or None when there is no such profile."""
    user = UserRepository(db).get_by_email(email, include_deleted=False)
    return user.id if user is not None else None


def update_profile(
    db: Session,
    email: str,
    changes: dict[str, Any],
    acting_role_id: int,
    admin_role_id: int,
) -> User:
    user = get_profile_by_email(db, email)
    role_id = changes.get("role_id")
    if role_id is not None and role_id != user.role_id:
        if acting_role_id != admin_role_id:
            raise ForbiddenError("Only administrators can change a user's role")
        if RoleRepository(db).get(role_id) is None:
            raise ValidationError(f"Unknown role id {role_id}")
        user.role_id = role_id
    for name in PROFILE_FIELDS:
        if changes.get(name) is not None:
            setattr(user, name, changes[name])
    db.commit()
    db.refresh(user)
    return user


def get_avatar(db: Session, user_id: int) -> UserAvatar | None:
    return db.query(UserAvatar).filter(UserAvatar.user_id == user_id).first()


def set_avatar(db: Session, user_id: int, content: bytes, mime_type: str, max_bytes: int) -> UserAvatar:
    """Replace the user's avatar; only image/* content up to max_bytes is accepted."""
    if not content:
        raise ValidationError("No file uploaded")
    if not mime_type or not mime_type.startswith("image/"):
        raise ValidationError("Only image files are allowed")
    if len(content) > max_bytes:
        raise ValidationError(f"File size must not exceed {max_bytes // (1024 * 1024)} MB")
    try:
        existing = get_avatar(db, user_id)
        if existing is not None:
            db.delete(existing)
            db.flush()
        avatar = UserAvatar(user_id=user_id, content=content, mime_type=mime_type)
        db.add(avatar)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(avatar)
    return avatar


def delete_avatar(db: Session, user_id: int) -> bool:
    avatar = get_avatar(db, user_id)
    if avatar is None:
        return False
    db.delete(avatar)
    db.commit()
    return True
