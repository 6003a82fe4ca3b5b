"""Administrative endpoints for notification publishing and user groups."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.database import get_db
from app.models import User
from app.schemas import (
    GroupCreate,
    GroupRead,
    GroupUpdate,
    NotificationCreate,
    NotificationPublishedRead,
)
from app.services import groups as group_service
from app.services import notifications as notification_service
from app.services.notifications import NotificationStats

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/notifications", response_model=list[NotificationPublishedRead])
def list_published_notifications(
    limit: int = Query(default=100),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> list[NotificationPublishedRead]:
    stats = notification_service.list_published(db, limit=limit)
    return [NotificationPublishedRead.from_stats(entry) for entry in stats]


@router.post(
    "/notifications",
    response_model=NotificationPublishedRead,
    status_code=status.HTTP_201_CREATED,
)
def publish_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> NotificationPublishedRead:
    """Publish a notification and fan it out to the resolved audience."""

    notification = notification_service.publish(
        db, payload.title, payload.body, payload.kind, payload.target.to_target()
    )
    return NotificationPublishedRead.from_stats(
        NotificationStats(
            notification=notification,
            recipient_count=len(notification.recipients),
            read_count=0,
        )
    )


@router.get("/groups", response_model=list[GroupRead])
def list_groups(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> list[GroupRead]:
    return [GroupRead.model_validate(group) for group in group_service.list_groups(db)]


@router.post("/groups", response_model=GroupRead, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> GroupRead:
    group = group_service.create_group(db, payload.name, payload.description, payload.user_ids)
    return GroupRead.model_validate(group)


@router.get("/groups/{group_id}", response_model=GroupRead)
def get_group(
    group_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> GroupRead:
    return GroupRead.model_validate(group_service.get_group(db, group_id))


@router.put("/groups/{group_id}", response_model=GroupRead)
def update_group(
    group_id: int,
    payload: GroupUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> GroupRead:
    """Update a group; ``user_ids`` when present replaces the membership."""

    changes = {
        field: getattr(payload, field)
        for field in ("name", "description")
        if field in payload.model_fields_set
    }
    group = group_service.update_group(db, group_id, user_ids=payload.user_ids, **changes)
    return GroupRead.model_validate(group)


@router.delete(
    "/groups/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def delete_group(
    group_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> Response:
    group_service.delete_group(db, group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
