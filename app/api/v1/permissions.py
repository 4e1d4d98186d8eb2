"""Permission catalogue endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.guards import get_current_user
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.role import PermissionItem
from app.services.roles import list_permissions

router = APIRouter()


@router.get("", response_model=list[PermissionItem])
def get_permissions(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[PermissionItem]:
    """All permissions, ordered by code."""
    return [PermissionItem.model_validate(p) for p in list_permissions(db)]
