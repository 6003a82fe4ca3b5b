"""Append-only message log gated by room membership."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.core.errors import InvalidInput, NotFound
from app.database import commit_or_fail
from app.models import ChatRoom, Message, utcnow
from app.monitoring.metrics import messages_posted_total
from app.services.rooms import require_membership

logger = logging.getLogger(__name__)

settings = get_settings()


@dataclass(slots=True)
class MessagePage:
    """Oldest-first slice of a room's history."""

    items: list[Message]
    has_more: bool

    @property
    def next_before(self) -> int | None:
        """Cursor for the next (older) page."""

        if not self.has_more or not self.items:
            return None
        return self.items[0].id


def _clean_content(content: str | None) -> str:
    max_length = settings.chat_message_max_length
    cleaned = (content or "").strip()
    if not cleaned:
        raise InvalidInput("Message content is required", field="content")
    if len(cleaned) > max_length:
        raise InvalidInput(
            f"Message content must be at most {max_length} characters", field="content"
        )
    return cleaned


def post_message(db: Session, room_id: int, sender_id: int, content: str) -> Message:
    """Append a message; the sender must currently be a room member.

    Every check runs before the first write, so a rejected call leaves no
    trace. The message insert and the room's last-activity bump commit
    together.
    """

    cleaned = _clean_content(content)
    room, _ = require_membership(db, room_id, sender_id)

    now = utcnow()
    message = Message(room_id=room.id, sender_id=sender_id, content=cleaned, created_at=now)
    db.add(message)
    # never move last activity backwards when an older stamp commits late
    db.execute(
        update(ChatRoom)
        .where(
            ChatRoom.id == room.id,
            or_(ChatRoom.last_message_at.is_(None), ChatRoom.last_message_at < now),
        )
        .values(last_message_at=now)
        .execution_options(synchronize_session=False)
    )
    commit_or_fail(db, "post_message")
    messages_posted_total.inc()
    logger.debug("User %s posted message %s in room %s", sender_id, message.id, room.id)

    stmt = select(Message).where(Message.id == message.id).options(selectinload(Message.sender))
    return db.execute(stmt).scalar_one()


def list_messages(
    db: Session,
    room_id: int,
    viewer_id: int,
    *,
    limit: int | None = None,
    before: int | None = None,
) -> MessagePage:
    """Return up to ``limit`` messages strictly older than ``before``, oldest first.

    Ordering is total over ``(created_at, id)`` so every reader sees the same
    sequence even when timestamps collide.
    """

    if limit is None:
        limit = settings.chat_history_default_limit
    if limit < 1 or limit > settings.chat_history_max_limit:
        raise InvalidInput(
            f"limit must be between 1 and {settings.chat_history_max_limit}", field="limit"
        )
    room, _ = require_membership(db, room_id, viewer_id)

    stmt = select(Message).where(Message.room_id == room.id)
    if before is not None:
        pivot = db.get(Message, before)
        if pivot is None or pivot.room_id != room.id:
            raise NotFound("Message not found", field="before")
        stmt = stmt.where(
            or_(
                Message.created_at < pivot.created_at,
                and_(Message.created_at == pivot.created_at, Message.id < pivot.id),
            )
        )
    stmt = (
        stmt.order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit + 1)
        .options(selectinload(Message.sender))
    )
    rows = list(db.execute(stmt).scalars())
    has_more = len(rows) > limit
    if has_more:
        rows = rows[:-1]
    rows.reverse()
    return MessagePage(items=rows, has_more=has_more)
