"""Notification inbox endpoints for the current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.config import get_settings
from app.database import get_db
from app.models import User
from app.schemas import MarkAllReadResult, NotificationRead, RecipientStateRead, UnreadCountRead
from app.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])

settings = get_settings()


@router.get("", response_model=list[NotificationRead])
def list_notifications(
    limit: int = Query(default=settings.notifications_default_limit),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[NotificationRead]:
    """Return the caller's notifications, newest first."""

    rows = notification_service.list_for_user(db, current_user.id, limit=limit)
    return [NotificationRead.from_rows(notification, recipient) for notification, recipient in rows]


@router.get("/unread-count", response_model=UnreadCountRead)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UnreadCountRead:
    return UnreadCountRead(unread=notification_service.unread_count(db, current_user.id))


@router.post("/read-all", response_model=MarkAllReadResult)
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MarkAllReadResult:
    return MarkAllReadResult(updated=notification_service.mark_all_read(db, current_user.id))


@router.post("/{notification_id}/read", response_model=RecipientStateRead)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RecipientStateRead:
    """Mark one notification as read; repeating the call is harmless."""

    recipient = notification_service.mark_read(db, notification_id, current_user.id)
    return RecipientStateRead.model_validate(recipient)
