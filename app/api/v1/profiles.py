"""Profile and avatar endpoints. A profile is readable and editable by its owner or an admin."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.api.guards import get_current_user, owner_guard, require_permissions
from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import AppError
from app.schemas.auth import CurrentUser
from app.schemas.user import AvatarResponse, Profile, ProfileUpdatedResponse, ProfileUpdateRequest
from app.services import users as user_service
from app.services.permissions import LIST_PROFILES

router = APIRouter()


def _email_param(request: Request) -> str:
    return request.path_params["email"].strip().lower()


def _profile_owner(request: Request, db: Session) -> int | None:
    return user_service.profile_owner_id(db, _email_param(request))


@router.get("", response_model=list[Profile])
def list_profiles(
    _user: Annotated[CurrentUser, Depends(require_permissions(LIST_PROFILES))],
    db: Annotated[Session, Depends(get_db)],
) -> list[Profile]:
    return [Profile.from_user(u) for u in user_service.list_profiles(db)]


@router.get("/me", response_model=Profile)
def my_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Profile:
    return Profile.from_user(user_service.get_user(db, current_user.id))


@router.get("/me/avatar")
def get_my_avatar(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    avatar = user_service.get_avatar(db, current_user.id)
    if avatar is None or avatar.content is None:
        raise AppError("Avatar not found", status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=avatar.content, media_type=avatar.mime_type or "application/octet-stream")


@router.put("/me/avatar", response_model=AvatarResponse)
def put_my_avatar(
    avatar: Annotated[UploadFile, File(description="Image file (image/*)")],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AvatarResponse:
    """Replace the caller's avatar with an uploaded image."""
    settings = get_settings()
    content = avatar.file.read(settings.MAX_AVATAR_BYTES + 1)
    saved = user_service.set_avatar(
        db,
        current_user.id,
        content,
        avatar.content_type or "",
        settings.MAX_AVATAR_BYTES,
    )
    return AvatarResponse.model_validate(saved)


@router.delete("/me/avatar", status_code=status.HTTP_204_NO_CONTENT)
def delete_my_avatar(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    if not user_service.delete_avatar(db, current_user.id):
        raise AppError("No avatar found", status_code=status.HTTP_404_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{email}", response_model=Profile)
def get_profile(
    request: Request,
    _user: Annotated[CurrentUser, Depends(owner_guard(_profile_owner))],
    db: Annotated[Session, Depends(get_db)],
) -> Profile:
    return Profile.from_user(user_service.get_profile_by_email(db, _email_param(request)))


@router.put("/{email}", response_model=ProfileUpdatedResponse)
def update_profile(
    request: Request,
    body: ProfileUpdateRequest,
    current_user: Annotated[CurrentUser, Depends(owner_guard(_profile_owner))],
    db: Annotated[Session, Depends(get_db)],
) -> ProfileUpdatedResponse:
    """Update a profile. Only administrators may change roleId."""
    user = user_service.update_profile(
        db,
        _email_param(request),
        body.model_dump(exclude_unset=True),
        acting_role_id=current_user.role_id,
        admin_role_id=get_settings().ADMIN_ROLE_ID,
    )
    return ProfileUpdatedResponse(message="Profile updated successfully", profile=Profile.from_user(user))
