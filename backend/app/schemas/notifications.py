"""Schemas for publishing and reading notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from app.models import Notification, NotificationKind, NotificationRecipient, NotificationTargetKind
from app.services.notifications import (
    AllUsers,
    GroupTarget,
    IndividualTarget,
    NotificationStats,
    NotificationTarget,
)


class AllUsersTargetPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["all"]

    def to_target(self) -> NotificationTarget:
        return AllUsers()


class GroupTargetPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["group"]
    group_id: int

    def to_target(self) -> NotificationTarget:
        return GroupTarget(group_id=self.group_id)


class IndividualTargetPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["individual"]
    user_ids: list[int] = Field(..., min_length=1)

    def to_target(self) -> NotificationTarget:
        return IndividualTarget.of(self.user_ids)


TargetPayload = Annotated[
    Union[AllUsersTargetPayload, GroupTargetPayload, IndividualTargetPayload],
    Field(discriminator="type"),
]


class NotificationCreate(BaseModel):
    """Admin payload describing a notification and its audience."""

    title: str
    body: str
    kind: NotificationKind = NotificationKind.INFO
    target: TargetPayload


class NotificationRead(BaseModel):
    """A notification as delivered to one recipient."""

    id: int
    title: str
    body: str
    kind: NotificationKind
    created_at: datetime
    is_read: bool
    read_at: datetime | None = None

    @classmethod
    def from_rows(
        cls, notification: Notification, recipient: NotificationRecipient
    ) -> "NotificationRead":
        return cls(
            id=notification.id,
            title=notification.title,
            body=notification.body,
            kind=notification.kind,
            created_at=notification.created_at,
            is_read=recipient.is_read,
            read_at=recipient.read_at,
        )


class RecipientStateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    notification_id: int
    is_read: bool
    read_at: datetime | None = None


class NotificationPublishedRead(BaseModel):
    """Admin view of a published notification."""

    id: int
    title: str
    body: str
    kind: NotificationKind
    target_kind: NotificationTargetKind
    target_group_id: int | None = None
    created_at: datetime
    recipient_count: int
    read_count: int = 0

    @classmethod
    def from_stats(cls, stats: NotificationStats) -> "NotificationPublishedRead":
        notification = stats.notification
        return cls(
            id=notification.id,
            title=notification.title,
            body=notification.body,
            kind=notification.kind,
            target_kind=notification.target_kind,
            target_group_id=notification.target_group_id,
            created_at=notification.created_at,
            recipient_count=stats.recipient_count,
            read_count=stats.read_count,
        )


class UnreadCountRead(BaseModel):
    unread: int


class MarkAllReadResult(BaseModel):
    updated: int
