"""Metric definitions for the messaging and notification services."""

from __future__ import annotations

from .registry import registry


direct_rooms_total = registry.counter(
    "chat_direct_rooms_total",
    "Direct room lookups by outcome (created, existing, race).",
    label_names=("outcome",),
)

group_rooms_created_total = registry.counter(
    "chat_group_rooms_created_total",
    "Number of group rooms created.",
)

messages_posted_total = registry.counter(
    "chat_messages_posted_total",
    "Number of chat messages appended to room logs.",
)

notifications_published_total = registry.counter(
    "notifications_published_total",
    "Number of notifications published, by target kind.",
    label_names=("target",),
)

notification_recipients_created_total = registry.counter(
    "notification_recipients_created_total",
    "Number of recipient rows created by notification fan-out.",
)

notifications_read_total = registry.counter(
    "notifications_read_total",
    "Number of recipient rows flipped from unread to read.",
)

storage_failures_total = registry.counter(
    "storage_failures_total",
    "Storage or transaction failures that were rolled back, by operation.",
    label_names=("operation",),
)
