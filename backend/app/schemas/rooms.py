"""Schemas for group rooms, direct rooms and their membership."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr

from app.models import RoomKind, RoomRole
from app.services.rooms import RoomSummary


class RoomCreate(BaseModel):
    """Payload for creating a new group room."""

    name: constr(strip_whitespace=True, min_length=1) = Field(
        ..., description="Human readable room name"
    )


class DirectRoomCreate(BaseModel):
    """Payload for opening (or re-opening) a direct room with another user."""

    user_id: int = Field(..., description="Identifier of the counterpart")


class RoomMemberAdd(BaseModel):
    """Payload for adding a member to a group room."""

    user_id: int


class MessagePreviewRead(BaseModel):
    """Latest message shown next to a room in listings."""

    model_config = ConfigDict(from_attributes=True)

    content: str
    created_at: datetime
    sender_id: int | None = None
    sender_name: str | None = None


class RoomMemberRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    role: RoomRole
    joined_at: datetime


class RoomRead(BaseModel):
    """Room as seen by one member."""

    id: int
    kind: RoomKind
    display_name: str
    role: RoomRole
    member_count: int
    counterpart_id: int | None = None
    created_at: datetime
    last_activity_at: datetime
    last_message: MessagePreviewRead | None = None
    members: list[RoomMemberRead] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: RoomSummary, viewer_id: int) -> "RoomRead":
        room = summary.room
        return cls(
            id=room.id,
            kind=RoomKind.GROUP if room.is_group else RoomKind.DIRECT,
            display_name=summary.display_name,
            role=summary.role,
            member_count=summary.member_count,
            counterpart_id=room.counterpart_id(viewer_id),
            created_at=room.created_at,
            last_activity_at=summary.last_activity_at,
            last_message=(
                MessagePreviewRead.model_validate(summary.last_message)
                if summary.last_message is not None
                else None
            ),
            members=[RoomMemberRead.model_validate(member) for member in room.members],
        )
