"""Application service helpers."""

from . import directory, groups, messages, notifications, rooms

__all__ = ["directory", "groups", "messages", "notifications", "rooms"]
