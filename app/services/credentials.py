"""Credential store: create, verify, rotate and revoke password/OpenID credentials.

Functions here add and flush through the session they are given; the calling flow
(app.services.auth) owns commit and rollback so multi-row writes stay atomic.
"""

import logging
from datetime import UTC, datetime
from functools import lru_cache

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    ConflictError,
    CredentialNotFound,
    InvalidCredentials,
    LastCredentialError,
    ValidationError,
)
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password, verify_password as check_hash
from app.models import AUTH_TYPE_OPENID, AUTH_TYPE_PASSWORD, AUTH_TYPES, UserCredential
from app.repositories import CredentialRepository

logger = logging.getLogger(__name__)

INVALID_LOGIN_MESSAGE = "Invalid login credentials"
PASSWORD_EXPIRED_MESSAGE = "Password has expired. Please reset your password."


@lru_cache
def _dummy_hash() -> str:
    # Compared against when the login name is unknown so both paths pay the bcrypt cost.
    return hash_password("compliance-mait-timing-dummy")


def validate_new_password(password: str) -> None:
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise ValidationError(
            f"Password must be between {PASSWORD_MIN_LEN} and {PASSWORD_MAX_LEN} characters long"
        )


def create_credential(
    db: Session,
    user_id: int,
    auth_type: str,
    login_name: str,
    secret: str | tuple[str, str],
) -> UserCredential:
    """
    Persist a new active credential for user_id.

    secret is the plaintext password for auth_type "password", or a
    (provider, subject) pair for "openid". Raises ValidationError if the secret
    does not fit the auth type, ConflictError if the login name or OpenID
    identity is already taken.
    """
    if auth_type not in AUTH_TYPES:
        raise ValidationError(f"Unsupported auth type: {auth_type!r}")
    login_name = (login_name or "").strip()
    repo = CredentialRepository(db)
    credential = UserCredential(
        user_id=user_id,
        auth_type=auth_type,
        login_name=login_name,
        is_active=True,
        is_deleted=False,
        password_expired=False,
    )
    if auth_type == AUTH_TYPE_PASSWORD:
        if not isinstance(secret, str):
            raise ValidationError("Password auth type requires a password")
        validate_new_password(secret)
        credential.password_hash = hash_password(secret)
        credential.last_password_change = datetime.now(UTC)
    else:
        if not isinstance(secret, tuple) or len(secret) != 2 or not all(secret):
            raise ValidationError("OpenID auth type requires provider and subject")
        credential.openid_provider, credential.openid_subject = secret
        if repo.get_by_openid(credential.openid_provider, credential.openid_subject) is not None:
            raise ConflictError("OpenID identity already linked to an account")
    credential.check_shape()

    if repo.get_by_login(login_name, auth_type) is not None:
        raise ConflictError("Login name already in use")
    try:
        return repo.add(credential)
    except IntegrityError as e:
        raise ConflictError("Login name already in use") from e


def verify_password(db: Session, login_name: str, plaintext: str) -> UserCredential:
    """
    Return the active password credential for login_name if plaintext matches its hash.

    Raises InvalidCredentials for an unknown login name, a wrong password, or an
    expired password. bcrypt runs in every case.
    """
    login_name = (login_name or "").strip()
    credential = CredentialRepository(db).get_active_password_by_login(login_name)
    if credential is None or not credential.password_hash:
        check_hash(plaintext, _dummy_hash())
        raise InvalidCredentials(INVALID_LOGIN_MESSAGE)
    if not check_hash(plaintext, credential.password_hash):
        raise InvalidCredentials(INVALID_LOGIN_MESSAGE)
    if credential.password_expired:
        raise InvalidCredentials(PASSWORD_EXPIRED_MESSAGE)
    return credential


def _get_password_credential(db: Session, credential_id: int) -> UserCredential:
    credential = CredentialRepository(db).get(credential_id)
    if (
        credential is None
        or credential.is_deleted
        or not credential.is_active
        or credential.auth_type != AUTH_TYPE_PASSWORD
    ):
        raise CredentialNotFound("Credential not found")
    return credential


def mark_password_expired(db: Session, credential_id: int) -> UserCredential:
    """Force the next login with this credential to fail until the password is rotated."""
    credential = _get_password_credential(db, credential_id)
    credential.password_expired = True
    db.flush()
    return credential


def rotate_password(db: Session, credential_id: int, new_plaintext: str) -> UserCredential:
    """Re-hash with a fresh salt, stamp last_password_change and clear the expired flag."""
    validate_new_password(new_plaintext)
    credential = _get_password_credential(db, credential_id)
    credential.password_hash = hash_password(new_plaintext)
    credential.last_password_change = datetime.now(UTC)
    credential.password_expired = False
    db.flush()
    return credential


def soft_delete_credential(db: Session, credential_id: int, user_id: int) -> UserCredential:
    """
    Deactivate one of user_id's credentials.

    The active count is read without a lock; two concurrent deletes of a user's
    last two credentials could both pass. Deletions are rare and a failed one
    changes nothing, so the check is kept as a single read.
    """
    repo = CredentialRepository(db)
    credential = repo.get_active_for_user(credential_id, user_id)
    if credential is None:
        raise CredentialNotFound("Credential not found")
    if repo.count_active_for_user(user_id) <= 1:
        raise LastCredentialError("Cannot delete the only credential for this user")
    credential.is_active = False
    credential.is_deleted = True
    db.flush()
    logger.info(
        "Credential deleted",
        extra={"user_id": user_id, "credential_id": credential_id, "auth_type": credential.auth_type},
    )
    return credential


def find_or_create_openid_credential(
    db: Session,
    provider: str,
    subject: str,
    user_id: int,
    login_name: str,
) -> UserCredential:
    """
    Return the credential mapped to (provider, subject), creating it for user_id if absent.

    The insert runs in a savepoint; if a concurrent request created the same
    identity first, the savepoint is rolled back and the winner's row is returned.
    """
    repo = CredentialRepository(db)
    existing = repo.get_by_openid(provider, subject)
    if existing is not None:
        return existing
    try:
        with db.begin_nested():
            return create_credential(db, user_id, AUTH_TYPE_OPENID, login_name, (provider, subject))
    except (IntegrityError, ConflictError):
        existing = repo.get_by_openid(provider, subject)
        if existing is None:
            raise
        logger.info("OpenID credential created concurrently", extra={"provider": provider})
        return existing


def list_active_credentials(db: Session, user_id: int) -> list[UserCredential]:
    return CredentialRepository(db).list_active_for_user(user_id)
