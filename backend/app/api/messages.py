"""Message log API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.config import get_settings
from app.database import get_db
from app.models import User
from app.schemas import MessageCreate, MessagePageRead, MessageRead
from app.services import messages as message_service

router = APIRouter(prefix="/rooms/{room_id}/messages", tags=["messages"])

settings = get_settings()


@router.get("", response_model=MessagePageRead)
def list_messages(
    room_id: int,
    limit: int = Query(default=settings.chat_history_default_limit),
    before: int | None = Query(default=None, description="Return messages older than this id"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessagePageRead:
    """Return a page of room history, oldest message first."""

    page = message_service.list_messages(db, room_id, current_user.id, limit=limit, before=before)
    return MessagePageRead(
        items=[MessageRead.model_validate(message) for message in page.items],
        has_more=page.has_more,
        next_before=page.next_before,
    )


@router.post("", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
def post_message(
    room_id: int,
    payload: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageRead:
    message = message_service.post_message(db, room_id, current_user.id, payload.content)
    return MessageRead.model_validate(message)
