"""Schemas related to chat messages."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models import Message


class MessageCreate(BaseModel):
    """Payload for posting a message to a room."""

    content: str = Field(..., description="Message text")


class MessageRead(BaseModel):
    """Representation of a chat message returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    room_id: int
    sender_id: int | None
    sender_name: str | None = None
    content: str
    created_at: datetime

    @model_validator(mode="before")
    @classmethod
    def extract_sender(cls, values):
        if isinstance(values, Message):
            sender = values.sender
            return {
                "id": values.id,
                "room_id": values.room_id,
                "sender_id": values.sender_id,
                "sender_name": sender.name if sender is not None else None,
                "content": values.content,
                "created_at": values.created_at,
            }
        return values


class MessagePageRead(BaseModel):
    """One page of room history, oldest message first."""

    items: list[MessageRead]
    has_more: bool
    next_before: int | None = None
