"""Room directory: group rooms, deduplicated direct rooms and membership."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.core.errors import Conflict, Forbidden, Internal, InvalidInput, NotFound
from app.database import commit_or_fail
from app.models import ChatRoom, Message, RoomKind, RoomMember, RoomRole
from app.monitoring.metrics import (
    direct_rooms_total,
    group_rooms_created_total,
    storage_failures_total,
)
from app.services.directory import require_user, user_names

logger = logging.getLogger(__name__)

settings = get_settings()


@dataclass(slots=True)
class MessagePreview:
    content: str
    created_at: datetime
    sender_id: int | None
    sender_name: str | None


@dataclass(slots=True)
class RoomSummary:
    """Read-side view of a room as seen by one member."""

    room: ChatRoom
    display_name: str
    member_count: int
    role: RoomRole
    last_message: MessagePreview | None

    @property
    def last_activity_at(self) -> datetime:
        return self.room.last_message_at or self.room.created_at


def normalize_pair(user_id: int, other_id: int) -> tuple[int, int]:
    return (user_id, other_id) if user_id < other_id else (other_id, user_id)


def _clean_room_name(name: str | None) -> str:
    max_length = settings.chat_room_name_max_length
    cleaned = (name or "").strip()
    if not cleaned or len(cleaned) > max_length:
        raise InvalidInput(f"Room name must be 1-{max_length} characters", field="name")
    return cleaned


def get_room(db: Session, room_id: int) -> ChatRoom:
    stmt = (
        select(ChatRoom)
        .where(ChatRoom.id == room_id)
        .options(selectinload(ChatRoom.members))
    )
    room = db.execute(stmt).scalar_one_or_none()
    if room is None:
        raise NotFound("Room not found", field="room_id")
    return room


def get_membership(db: Session, room_id: int, user_id: int) -> RoomMember | None:
    stmt = select(RoomMember).where(
        RoomMember.room_id == room_id,
        RoomMember.user_id == user_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def require_membership(db: Session, room_id: int, user_id: int) -> tuple[ChatRoom, RoomMember]:
    """Gate shared by every room-scoped operation.

    Raises :class:`NotFound` for a missing room and a generic
    :class:`Forbidden` for non-members.
    """

    room = get_room(db, room_id)
    membership = get_membership(db, room.id, user_id)
    if membership is None:
        raise Forbidden()
    return room, membership


def create_group_room(db: Session, creator_id: int, name: str) -> ChatRoom:
    """Create a group room owned by ``creator_id``."""

    cleaned = _clean_room_name(name)
    require_user(db, creator_id, field="creator_id")
    room = ChatRoom(display_name=cleaned, is_group=True, created_by_id=creator_id)
    room.members = [RoomMember(user_id=creator_id, role=RoomRole.OWNER)]
    db.add(room)
    commit_or_fail(db, "create_group_room")
    group_rooms_created_total.inc()
    logger.info("User %s created group room %s", creator_id, room.id)
    return get_room(db, room.id)


def _find_direct_room(db: Session, low_id: int, high_id: int) -> ChatRoom | None:
    stmt = (
        select(ChatRoom)
        .where(
            ChatRoom.is_group.is_(False),
            ChatRoom.direct_user_low_id == low_id,
            ChatRoom.direct_user_high_id == high_id,
        )
        .options(selectinload(ChatRoom.members))
    )
    return db.execute(stmt).scalar_one_or_none()


def _insert_direct_room(
    db: Session, low_id: int, high_id: int, *, fallback_name: str, creator_id: int
) -> ChatRoom:
    """Insert the room and both memberships atomically.

    Raises :class:`Conflict` when another writer already holds the pair key.
    """

    room = ChatRoom(
        display_name=fallback_name,
        is_group=False,
        direct_user_low_id=low_id,
        direct_user_high_id=high_id,
        created_by_id=creator_id,
    )
    room.members = [
        RoomMember(user_id=low_id, role=RoomRole.MEMBER),
        RoomMember(user_id=high_id, role=RoomRole.MEMBER),
    ]
    db.add(room)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Direct room already exists for this pair") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        storage_failures_total.inc(operation="get_or_create_direct_room")
        logger.exception("Storage failure creating direct room for (%s, %s)", low_id, high_id)
        raise Internal() from exc
    return room


def get_or_create_direct_room(db: Session, user_a: int, user_b: int) -> tuple[ChatRoom, bool]:
    """Return the single direct room for the pair, creating it when absent.

    The second element tells whether this call created the room. A racing
    creator that loses on the unique pair key re-reads and returns the
    winner's room instead of failing.
    """

    if user_a == user_b:
        raise InvalidInput("Cannot open a direct room with yourself", field="user_id")
    first = require_user(db, user_a, field="user_id")
    second = require_user(db, user_b, field="user_id")
    low_id, high_id = normalize_pair(user_a, user_b)

    existing = _find_direct_room(db, low_id, high_id)
    if existing is not None:
        direct_rooms_total.inc(outcome="existing")
        return existing, False

    fallback_name = f"{first.name} & {second.name}"[: settings.chat_room_name_max_length]
    try:
        room = _insert_direct_room(
            db, low_id, high_id, fallback_name=fallback_name, creator_id=user_a
        )
    except Conflict:
        winner = _find_direct_room(db, low_id, high_id)
        if winner is None:
            storage_failures_total.inc(operation="get_or_create_direct_room")
            logger.error(
                "Direct room conflict for (%s, %s) but no room found on re-read", low_id, high_id
            )
            raise Internal() from None
        direct_rooms_total.inc(outcome="race")
        logger.warning(
            "Direct room race for (%s, %s) resolved to existing room %s",
            low_id,
            high_id,
            winner.id,
        )
        return winner, False

    direct_rooms_total.inc(outcome="created")
    logger.info("Created direct room %s for users (%s, %s)", room.id, low_id, high_id)
    return get_room(db, room.id), True


def _require_group_room(room: ChatRoom) -> None:
    if not room.is_group:
        raise InvalidInput("direct rooms are fixed at two members", field="room_id")


def add_member(db: Session, room_id: int, actor_id: int, user_id: int) -> RoomMember:
    """Add ``user_id`` to a group room; only the owner may add members."""

    room, actor = require_membership(db, room_id, actor_id)
    _require_group_room(room)
    if actor.role != RoomRole.OWNER:
        raise Forbidden()
    require_user(db, user_id)
    existing = get_membership(db, room.id, user_id)
    if existing is not None:
        return existing

    membership = RoomMember(room_id=room.id, user_id=user_id, role=RoomRole.MEMBER)
    db.add(membership)
    commit_or_fail(db, "add_member")
    logger.info("User %s added user %s to room %s", actor_id, user_id, room.id)
    return membership


def remove_member(db: Session, room_id: int, actor_id: int, user_id: int) -> None:
    """Remove a member from a group room.

    The owner may remove other members; any member may remove themselves.
    The owner cannot leave their own room.
    """

    room, actor = require_membership(db, room_id, actor_id)
    _require_group_room(room)
    if actor_id != user_id and actor.role != RoomRole.OWNER:
        raise Forbidden()
    target = actor if actor_id == user_id else get_membership(db, room.id, user_id)
    if target is None:
        raise NotFound("Member not found", field="user_id")
    if target.role == RoomRole.OWNER:
        raise InvalidInput("The room owner cannot leave the room", field="user_id")

    db.delete(target)
    commit_or_fail(db, "remove_member")
    logger.info("User %s removed user %s from room %s", actor_id, user_id, room.id)


def _latest_messages(db: Session, room_ids: list[int]) -> dict[int, Message]:
    """Newest message per room, fetched in a single query."""

    if not room_ids:
        return {}
    ranked = (
        select(
            Message.id.label("message_id"),
            func.row_number()
            .over(
                partition_by=Message.room_id,
                order_by=(Message.created_at.desc(), Message.id.desc()),
            )
            .label("position"),
        )
        .where(Message.room_id.in_(room_ids))
        .subquery()
    )
    stmt = (
        select(Message)
        .join(ranked, ranked.c.message_id == Message.id)
        .where(ranked.c.position == 1)
        .options(selectinload(Message.sender))
    )
    return {message.room_id: message for message in db.execute(stmt).scalars()}


def resolve_display_name(room: ChatRoom, viewer_id: int, names: dict[int, str]) -> str:
    """Counterpart's current name for direct rooms, stored name otherwise."""

    if room.is_group:
        return room.display_name
    counterpart_id = room.counterpart_id(viewer_id)
    return names.get(counterpart_id) or room.display_name


def _summarize(
    room: ChatRoom,
    role: RoomRole,
    viewer_id: int,
    names: dict[int, str],
    latest: Message | None,
) -> RoomSummary:
    preview = None
    if latest is not None:
        preview = MessagePreview(
            content=latest.content,
            created_at=latest.created_at,
            sender_id=latest.sender_id,
            sender_name=latest.sender.name if latest.sender else None,
        )
    return RoomSummary(
        room=room,
        display_name=resolve_display_name(room, viewer_id, names),
        member_count=len(room.members),
        role=role,
        last_message=preview,
    )


def list_rooms_for_user(
    db: Session, user_id: int, *, kind: RoomKind | None = None
) -> list[RoomSummary]:
    """Rooms the user belongs to, most recently active first."""

    last_activity = func.coalesce(ChatRoom.last_message_at, ChatRoom.created_at)
    stmt = (
        select(ChatRoom, RoomMember.role)
        .join(RoomMember, RoomMember.room_id == ChatRoom.id)
        .where(RoomMember.user_id == user_id)
        .order_by(last_activity.desc(), ChatRoom.id.desc())
        .options(selectinload(ChatRoom.members))
    )
    if kind == RoomKind.GROUP:
        stmt = stmt.where(ChatRoom.is_group.is_(True))
    elif kind == RoomKind.DIRECT:
        stmt = stmt.where(ChatRoom.is_group.is_(False))
    rows = db.execute(stmt).all()

    names = user_names(db, (room.counterpart_id(user_id) for room, _ in rows))
    latest = _latest_messages(db, [room.id for room, _ in rows])
    return [
        _summarize(room, role, user_id, names, latest.get(room.id)) for room, role in rows
    ]


def get_room_for_member(db: Session, room_id: int, user_id: int) -> RoomSummary:
    room, membership = require_membership(db, room_id, user_id)
    names = user_names(db, [room.counterpart_id(user_id)])
    latest = _latest_messages(db, [room.id])
    return _summarize(room, membership.role, user_id, names, latest.get(room.id))
