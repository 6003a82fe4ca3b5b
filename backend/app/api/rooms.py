"""Room directory API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.database import get_db
from app.models import RoomKind, User
from app.schemas import DirectRoomCreate, RoomCreate, RoomMemberAdd, RoomRead
from app.services import rooms as room_service

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("", response_model=list[RoomRead])
def list_rooms(
    kind: RoomKind | None = Query(default=None, description="Restrict to group or direct rooms"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[RoomRead]:
    """Return rooms the current user belongs to, most recently active first."""

    summaries = room_service.list_rooms_for_user(db, current_user.id, kind=kind)
    return [RoomRead.from_summary(summary, current_user.id) for summary in summaries]


@router.post("", response_model=RoomRead, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RoomRead:
    """Create a group room with the current user as the owner."""

    room = room_service.create_group_room(db, current_user.id, payload.name)
    summary = room_service.get_room_for_member(db, room.id, current_user.id)
    return RoomRead.from_summary(summary, current_user.id)


@router.post("/direct", response_model=RoomRead)
def open_direct_room(
    payload: DirectRoomCreate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RoomRead:
    """Return the direct room shared with another user, creating it on first use."""

    room, created = room_service.get_or_create_direct_room(db, current_user.id, payload.user_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    summary = room_service.get_room_for_member(db, room.id, current_user.id)
    return RoomRead.from_summary(summary, current_user.id)


@router.get("/{room_id}", response_model=RoomRead)
def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RoomRead:
    summary = room_service.get_room_for_member(db, room_id, current_user.id)
    return RoomRead.from_summary(summary, current_user.id)


@router.post("/{room_id}/members", response_model=RoomRead)
def add_member(
    room_id: int,
    payload: RoomMemberAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RoomRead:
    """Add a user to a group room owned by the current user."""

    room_service.add_member(db, room_id, current_user.id, payload.user_id)
    summary = room_service.get_room_for_member(db, room_id, current_user.id)
    return RoomRead.from_summary(summary, current_user.id)


@router.delete(
    "/{room_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def remove_member(
    room_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    """Remove a member, or leave the room when ``user_id`` is the caller."""

    room_service.remove_member(db, room_id, current_user.id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
