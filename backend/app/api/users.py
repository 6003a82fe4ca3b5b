"""User directory lookups used when opening direct rooms."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.config import get_settings
from app.core.errors import InvalidInput
from app.database import get_db
from app.models import User
from app.schemas import CurrentUser, PublicUser
from app.services.directory import search_users

router = APIRouter(prefix="/users", tags=["users"])

settings = get_settings()


@router.get("/me", response_model=CurrentUser)
def read_current_user(current_user: User = Depends(get_current_user)) -> CurrentUser:
    return CurrentUser.model_validate(current_user)


@router.get("/search", response_model=list[PublicUser])
def search(
    q: str = Query(default=""),
    limit: int = Query(default=20),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[PublicUser]:
    """Find other users by name or email."""

    if limit < 1 or limit > settings.user_search_max_limit:
        raise InvalidInput(
            f"limit must be between 1 and {settings.user_search_max_limit}", field="limit"
        )
    users = search_users(db, q, exclude_user_id=current_user.id, limit=limit)
    return [PublicUser.model_validate(user) for user in users]
