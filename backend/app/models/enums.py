from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Roles assigned by the identity module."""

    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class RoomRole(str, Enum):
    """Roles that a user can have inside a chat room."""

    OWNER = "owner"
    MEMBER = "member"


class RoomKind(str, Enum):
    """Filter values for room listings."""

    GROUP = "group"
    DIRECT = "direct"


class NotificationKind(str, Enum):
    """Visual severity of a notification."""

    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"


class NotificationTargetKind(str, Enum):
    """Audience descriptor recorded on a notification for audit purposes."""

    ALL = "all"
    GROUP = "group"
    INDIVIDUAL = "individual"
