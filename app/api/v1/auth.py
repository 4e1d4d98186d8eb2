"""Login, registration, OpenID sign-in, password management and credential endpoints."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from app.api.guards import get_current_user
from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import ValidationError
from app.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    CredentialItem,
    CurrentUser,
    LoginRequest,
    OpenIdRequest,
    RegisterRequest,
    ResetPasswordConfirmRequest,
    ResetPasswordRequest,
    RoleSummary,
    UserSummary,
)
from app.schemas.base import MessageResponse
from app.services import auth as auth_service
from app.services.credentials import list_active_credentials
from app.services.email import send_password_reset_email

router = APIRouter()

RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent."


def _auth_response(message: str, result: auth_service.AuthResult) -> AuthResponse:
    user = result.user
    return AuthResponse(
        message=message,
        token=result.token,
        user=UserSummary(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role_id=user.role_id,
            role=RoleSummary.model_validate(user.role) if user.role is not None else None,
            avatar_id=user.avatar_id,
            permissions=result.permissions,
        ),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """
    Authenticate with login name and password; returns a session token and the user
    with the live permission codes of their role.
    Include the token in the Authorization header as: Bearer <token>
    """
    result = auth_service.login(db, body.login_name, body.password)
    return _auth_response("Login successful", result)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """Create a user with a password credential and sign in. 409 if the email or login name is taken."""
    if body.role_id is not None and body.role_id == get_settings().ADMIN_ROLE_ID:
        raise ValidationError("Cannot self-register with the administrative role")
    result = auth_service.register(
        db,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        login_name=body.login_name,
        role_id=body.role_id,
    )
    return _auth_response("User registered successfully", result)


@router.post("/openid", response_model=AuthResponse)
def openid(
    body: OpenIdRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """Sign in with an OpenID identity the client has already verified; creates the user/credential if new."""
    result = auth_service.openid_login(
        db,
        provider=body.provider,
        subject=body.subject,
        email=body.email,
        login_name=body.login_name,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return _auth_response("OpenID authentication successful", result)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Change the caller's password. A wrong current password is a 400, so the session survives."""
    auth_service.change_password(db, current_user.id, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/reset-password-request", response_model=MessageResponse)
def reset_password_request(
    body: ResetPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Email a reset link if the account exists. The response is identical either way."""
    issued = auth_service.request_password_reset(db, body.email)
    if issued is not None:
        user, reset_token = issued
        background_tasks.add_task(send_password_reset_email, user.email, reset_token, get_settings())
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password-confirm", response_model=MessageResponse)
def reset_password_confirm(
    body: ResetPasswordConfirmRequest,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Set a new password with a reset token. 401 for an invalid, expired or already used token."""
    auth_service.confirm_password_reset(db, body.reset_token, body.new_password)
    return MessageResponse(message="Password reset successful")


@router.get("/me", response_model=CurrentUser)
def me(current_user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
    """Return the authenticated user with the permission codes resolved for this request."""
    return current_user


@router.get("/credentials", response_model=list[CredentialItem])
def list_credentials(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[CredentialItem]:
    """List the caller's active credentials (password and OpenID)."""
    return [CredentialItem.model_validate(c) for c in list_active_credentials(db, current_user.id)]


@router.delete("/credentials/{credential_id}", response_model=MessageResponse)
def delete_credential(
    credential_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Revoke one of the caller's credentials. 400 if it is the last active one, 404 if not found."""
    auth_service.delete_credential(db, current_user.id, credential_id)
    return MessageResponse(message="Credential deleted successfully")
