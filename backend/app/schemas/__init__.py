"""Pydantic schemas for API payloads."""

from .groups import GroupCreate, GroupRead, GroupUpdate
from .messages import MessageCreate, MessagePageRead, MessageRead
from .notifications import (
    MarkAllReadResult,
    NotificationCreate,
    NotificationPublishedRead,
    NotificationRead,
    RecipientStateRead,
    UnreadCountRead,
)
from .rooms import DirectRoomCreate, MessagePreviewRead, RoomCreate, RoomMemberAdd, RoomRead
from .users import CurrentUser, PublicUser

__all__ = [
    "CurrentUser",
    "PublicUser",
    "RoomCreate",
    "DirectRoomCreate",
    "RoomMemberAdd",
    "RoomRead",
    "MessagePreviewRead",
    "MessageCreate",
    "MessageRead",
    "MessagePageRead",
    "GroupCreate",
    "GroupUpdate",
    "GroupRead",
    "NotificationCreate",
    "NotificationRead",
    "NotificationPublishedRead",
    "RecipientStateRead",
    "UnreadCountRead",
    "MarkAllReadResult",
]
