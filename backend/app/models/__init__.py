"""Database models package."""

from .base import Base, utcnow
from .chat import ChatRoom, Message, RoomMember, User
from .enums import NotificationKind, NotificationTargetKind, RoomKind, RoomRole, UserRole
from .notifications import Notification, NotificationRecipient, UserGroup, UserGroupMember

__all__ = [
    "Base",
    "utcnow",
    "User",
    "ChatRoom",
    "RoomMember",
    "Message",
    "UserGroup",
    "UserGroupMember",
    "Notification",
    "NotificationRecipient",
    "UserRole",
    "RoomRole",
    "RoomKind",
    "NotificationKind",
    "NotificationTargetKind",
]
