"""Authentication flows: login, registration, OpenID, password change and reset.

Each flow is one unit of work on the given session: it commits on success and
rolls back in full on any error, so a partial user/credential pair is never visible.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import (
    ConflictError,
    CredentialNotFound,
    InvalidCredentials,
    InvalidToken,
    ValidationError,
)
from app.core.security import (
    create_reset_token,
    create_session_token,
    decode_reset_token,
    password_fingerprint,
    verify_password as check_hash,
)
from app.models import AUTH_TYPE_PASSWORD, User, UserCredential
from app.repositories import CredentialRepository, RoleRepository, UserRepository
from app.services.credentials import (
    create_credential,
    find_or_create_openid_credential,
    rotate_password,
    soft_delete_credential,
    validate_new_password,
    verify_password,
)
from app.services.permissions import resolve_permissions

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """Outcome of a successful sign-in: session token, user, and live permission codes."""

    token: str
    user: User
    credential: UserCredential
    permissions: list[str] = field(default_factory=list)


def _issue(db: Session, user: User, credential: UserCredential) -> AuthResult:
    return AuthResult(
        token=create_session_token(user, credential),
        user=user,
        credential=credential,
        permissions=resolve_permissions(db, user.role_id),
    )


def login(db: Session, login_name: str, password: str) -> AuthResult:
    if not login_name or not password:
        raise ValidationError("Login name and password are required")
    try:
        credential = verify_password(db, login_name, password)
    except InvalidCredentials as e:
        logger.warning("Login failed", extra={"login_name": login_name, "reason": e.message})
        raise
    return _issue(db, credential.user, credential)


def register(
    db: Session,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    login_name: str,
    role_id: int | None = None,
) -> AuthResult:
    """
    Create a user and its password credential in one transaction and sign in.

    Raises ValidationError for bad input or an unknown role, ConflictError if the
    email or login name is taken (including a concurrent registration that wins the race).
    """
    settings = get_settings()
    email = (email or "").strip().lower()
    if not email or not first_name or not last_name or not login_name:
        raise ValidationError(
            "Email, password, first name, last name, and login name are required"
        )
    validate_new_password(password)
    role_id = role_id or settings.DEFAULT_ROLE_ID
    users = UserRepository(db)
    try:
        if RoleRepository(db).get(role_id) is None:
            raise ValidationError(f"Unknown role id {role_id}")
        if users.get_by_email(email) is not None:
            raise ConflictError("Email already in use")
        user = users.add(
            User(
                email=email,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                role_id=role_id,
                is_active=True,
                is_deleted=False,
            )
        )
        credential = create_credential(db, user.id, AUTH_TYPE_PASSWORD, login_name, password)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Email or login name already in use") from e
    except Exception:
        db.rollback()
        raise
    logger.info("User registered", extra={"user_id": user.id, "role_id": role_id})
    return _issue(db, user, credential)


def openid_login(
    db: Session,
    provider: str,
    subject: str,
    email: str,
    login_name: str,
    first_name: str | None = None,
    last_name: str | None = None,
) -> AuthResult:
    """
    Sign in with an OpenID identity, creating what is missing in one transaction.

    Known (provider, subject): refresh the user's names when given. Otherwise link
    a new OpenID credential to the user with this email, creating the user first
    if there is none. A revoked OpenID credential or a deactivated user is refused.
    """
    if not provider or not subject or not email or not login_name:
        raise ValidationError("Provider, subject, email, and login name are required")
    settings = get_settings()
    email = email.strip().lower()
    users = UserRepository(db)
    try:
        credential = CredentialRepository(db).get_by_openid(provider, subject)
        if credential is not None:
            if not credential.is_active or credential.is_deleted:
                raise InvalidCredentials("OpenID credential has been revoked")
            user = credential.user
            if first_name:
                user.first_name = first_name
            if last_name:
                user.last_name = last_name
        else:
            user = users.get_by_email(email)
            if user is None:
                user = users.add(
                    User(
                        email=email,
                        first_name=first_name or "",
                        last_name=last_name or "",
                        role_id=settings.DEFAULT_ROLE_ID,
                        is_active=True,
                        is_deleted=False,
                    )
                )
            credential = find_or_create_openid_credential(db, provider, subject, user.id, login_name)
        if not user.is_active or user.is_deleted:
            raise InvalidCredentials("Invalid login credentials")
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("OpenID identity or login name already in use") from e
    except Exception:
        db.rollback()
        raise
    logger.info("OpenID sign-in", extra={"user_id": user.id, "provider": provider})
    return _issue(db, user, credential)


def change_password(db: Session, user_id: int, current_password: str, new_password: str) -> None:
    """
    Rotate the caller's password. A wrong current password is a ValidationError
    (400), never a 401, so clients do not discard their still-valid session.
    """
    if not current_password or not new_password:
        raise ValidationError("Current password and new password are required")
    validate_new_password(new_password)
    credential = CredentialRepository(db).get_active_password_for_user(user_id)
    if credential is None:
        raise ValidationError("No password credential found for this user")
    if not check_hash(current_password, credential.password_hash):
        raise ValidationError("Current password is incorrect")
    try:
        rotate_password(db, credential.id, new_password)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Password changed", extra={"user_id": user_id})


def request_password_reset(db: Session, email: str) -> tuple[User, str] | None:
    """Return (user, reset token) for an active account with this email, else None."""
    if not email or not email.strip():
        raise ValidationError("Email is required")
    user = UserRepository(db).get_by_email(email, include_deleted=False)
    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown or inactive email")
        return None
    credential = CredentialRepository(db).get_active_password_for_user(user.id)
    logger.info("Password reset requested", extra={"user_id": user.id})
    return user, create_reset_token(user, credential.password_hash if credential is not None else None)


def confirm_password_reset(db: Session, reset_token: str, new_password: str) -> None:
    """
    Set a new password using a reset token.

    The token is rejected (401) if invalid, expired, a session token, issued to an
    email the user no longer has, or minted for a password that has since been
    replaced, which makes each token good for one reset.
    """
    if not reset_token or not new_password:
        raise ValidationError("Reset token and new password are required")
    validate_new_password(new_password)
    try:
        claims = decode_reset_token(reset_token)
    except InvalidToken as e:
        raise type(e)("Invalid or expired reset token", status_code=401) from e

    user = UserRepository(db).get_live(claims["userId"])
    if user is None or user.email != claims.get("email"):
        raise InvalidToken("Invalid or expired reset token", status_code=401)
    credential = CredentialRepository(db).get_active_password_for_user(user.id)
    if credential is None:
        raise CredentialNotFound("Invalid reset token")
    if claims.get("pwd") != password_fingerprint(credential.password_hash or ""):
        raise InvalidToken("Invalid or expired reset token", status_code=401)
    try:
        rotate_password(db, credential.id, new_password)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Password reset completed", extra={"user_id": user.id})


def delete_credential(db: Session, user_id: int, credential_id: int) -> None:
    try:
        soft_delete_credential(db, credential_id, user_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
