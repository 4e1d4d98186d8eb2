"""Password hashing and JWT session/reset token creation and verification."""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from app.core.config import settings
from app.core.errors import ExpiredToken, InvalidToken

if TYPE_CHECKING:
    from app.models import User, UserCredential

# Token "typ" claim values; session and reset tokens are never interchangeable.
SESSION_TOKEN_TYPE = "session"
RESET_TOKEN_TYPE = "reset"

# Min/max lengths for login name and password validation.
LOGIN_NAME_MIN_LEN = 1
LOGIN_NAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage with a fresh per-call salt."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _encode(claims: dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        **claims,
        "typ": token_type,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def _decode(token: str, token_type: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise ExpiredToken("Token expired") from e
    except jwt.PyJWTError as e:
        raise InvalidToken("Invalid token") from e
    if payload.get("typ") != token_type:
        raise InvalidToken("Invalid token")
    user_id = payload.get("userId")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise InvalidToken("Invalid token payload")
    return payload


def create_session_token(
    user: User,
    credential: UserCredential,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed session token for a user authenticated through one credential.

    Claims: userId, email, loginName, authType, roleId, avatarId. The role's
    permissions are deliberately absent; the auth guard resolves them per request.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    claims = {
        "userId": user.id,
        "email": user.email,
        "loginName": credential.login_name,
        "authType": credential.auth_type,
        "roleId": user.role_id,
        "avatarId": user.avatar_id,
    }
    return _encode(claims, SESSION_TOKEN_TYPE, expires_delta)


def password_fingerprint(password_hash: str) -> str:
    """Short digest of a stored hash; changes whenever the password is rotated."""
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


def create_reset_token(
    user: User,
    password_hash: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a short-lived, single-purpose password reset token (userId, email).

    With password_hash, the token also carries its fingerprint ("pwd") so it stops
    verifying once the password has been changed.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    claims: dict[str, Any] = {"userId": user.id, "email": user.email}
    if password_hash:
        claims["pwd"] = password_fingerprint(password_hash)
    return _encode(claims, RESET_TOKEN_TYPE, expires_delta)


def decode_session_token(token: str) -> dict[str, Any]:
    """
    Verify a session token and return its claims.
    Raises ExpiredToken when expired and InvalidToken for anything else, including reset tokens.
    """
    return _decode(token, SESSION_TOKEN_TYPE)


def decode_reset_token(token: str) -> dict[str, Any]:
    """Verify a password reset token; session tokens are rejected as InvalidToken."""
    return _decode(token, RESET_TOKEN_TYPE)
