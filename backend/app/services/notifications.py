"""Notification publishing, recipient fan-out and per-user read state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, Iterable, Union

from sqlalchemy import case, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.errors import Internal, InvalidInput, NotFound
from app.database import commit_or_fail
from app.models import (
    Notification,
    NotificationKind,
    NotificationRecipient,
    NotificationTargetKind,
    utcnow,
)
from app.monitoring.metrics import (
    notification_recipients_created_total,
    notifications_published_total,
    notifications_read_total,
    storage_failures_total,
)
from app.services.directory import all_user_ids, group_members, missing_user_ids

logger = logging.getLogger(__name__)

settings = get_settings()


@dataclass(frozen=True, slots=True)
class AllUsers:
    """Every user that exists at publish time."""

    kind: ClassVar[NotificationTargetKind] = NotificationTargetKind.ALL


@dataclass(frozen=True, slots=True)
class GroupTarget:
    """Current members of a user group."""

    group_id: int
    kind: ClassVar[NotificationTargetKind] = NotificationTargetKind.GROUP


@dataclass(frozen=True, slots=True)
class IndividualTarget:
    """An explicit set of user ids."""

    user_ids: frozenset[int]
    kind: ClassVar[NotificationTargetKind] = NotificationTargetKind.INDIVIDUAL

    @classmethod
    def of(cls, user_ids: Iterable[int]) -> "IndividualTarget":
        return cls(user_ids=frozenset(user_ids))


NotificationTarget = Union[AllUsers, GroupTarget, IndividualTarget]


@dataclass(slots=True)
class NotificationStats:
    notification: Notification
    recipient_count: int
    read_count: int


def resolve_target(db: Session, target: NotificationTarget) -> set[int]:
    """Resolve a target descriptor into a concrete, deduplicated id set."""

    if isinstance(target, AllUsers):
        return all_user_ids(db)
    if isinstance(target, GroupTarget):
        return group_members(db, target.group_id)
    if isinstance(target, IndividualTarget):
        requested = set(target.user_ids)
        missing = missing_user_ids(db, requested)
        if missing:
            raise NotFound(
                f"Unknown user ids: {', '.join(str(item) for item in sorted(missing))}",
                field="user_ids",
            )
        return requested
    raise InvalidInput("Unsupported notification target", field="target")


def _clean_text(value: str | None, field: str, max_length: int) -> str:
    cleaned = (value or "").strip()
    if not cleaned or len(cleaned) > max_length:
        raise InvalidInput(f"{field} must be 1-{max_length} characters", field=field)
    return cleaned


def _insert_recipients(db: Session, notification_id: int, user_ids: list[int]) -> None:
    db.execute(
        insert(NotificationRecipient),
        [
            {"notification_id": notification_id, "user_id": user_id, "is_read": False}
            for user_id in user_ids
        ],
    )


def publish(
    db: Session,
    title: str,
    body: str,
    kind: NotificationKind | str,
    target: NotificationTarget,
) -> Notification:
    """Create a notification and fan it out to every resolved recipient.

    The audience is resolved once, here. The notification row and all of its
    recipient rows are written in one transaction: either every row commits
    or none does.
    """

    title = _clean_text(title, "title", settings.notification_title_max_length)
    body = _clean_text(body, "body", settings.notification_body_max_length)
    try:
        kind = NotificationKind(kind)
    except ValueError:
        raise InvalidInput("Unknown notification kind", field="kind") from None

    recipients = sorted(resolve_target(db, target))
    if not recipients:
        raise InvalidInput("no recipients", field="target")

    notification = Notification(
        title=title,
        body=body,
        kind=kind,
        target_kind=target.kind,
        target_group_id=target.group_id if isinstance(target, GroupTarget) else None,
    )
    try:
        db.add(notification)
        db.flush()
        _insert_recipients(db, notification.id, recipients)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        storage_failures_total.inc(operation="publish")
        logger.exception(
            "Fan-out of notification %r to %d recipients failed; rolled back",
            title,
            len(recipients),
        )
        raise Internal() from exc

    notifications_published_total.inc(target=target.kind.value)
    notification_recipients_created_total.inc(amount=len(recipients))
    logger.info(
        "Published notification %s (%s) to %d recipients",
        notification.id,
        target.kind.value,
        len(recipients),
    )
    return notification


def get_recipient(db: Session, notification_id: int, user_id: int) -> NotificationRecipient | None:
    stmt = select(NotificationRecipient).where(
        NotificationRecipient.notification_id == notification_id,
        NotificationRecipient.user_id == user_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def mark_read(db: Session, notification_id: int, user_id: int) -> NotificationRecipient:
    """Flip the caller's recipient row to read; repeat calls keep the first ``read_at``.

    Callers without a recipient row get :class:`NotFound` whether or not the
    notification exists.
    """

    stmt = (
        update(NotificationRecipient)
        .where(
            NotificationRecipient.notification_id == notification_id,
            NotificationRecipient.user_id == user_id,
            NotificationRecipient.is_read.is_(False),
        )
        .values(is_read=True, read_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    commit_or_fail(db, "mark_read")
    if result.rowcount:
        notifications_read_total.inc()

    recipient = get_recipient(db, notification_id, user_id)
    if recipient is None:
        raise NotFound("Notification not found", field="notification_id")
    return recipient


def mark_all_read(db: Session, user_id: int) -> int:
    stmt = (
        update(NotificationRecipient)
        .where(
            NotificationRecipient.user_id == user_id,
            NotificationRecipient.is_read.is_(False),
        )
        .values(is_read=True, read_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    commit_or_fail(db, "mark_all_read")
    updated = result.rowcount or 0
    if updated:
        notifications_read_total.inc(amount=updated)
    return updated


def _check_limit(limit: int) -> None:
    if limit < 1 or limit > settings.notifications_max_limit:
        raise InvalidInput(
            f"limit must be between 1 and {settings.notifications_max_limit}", field="limit"
        )


def list_for_user(
    db: Session, user_id: int, *, limit: int | None = None
) -> list[tuple[Notification, NotificationRecipient]]:
    """The caller's notifications with their read state, newest first."""

    if limit is None:
        limit = settings.notifications_default_limit
    _check_limit(limit)
    stmt = (
        select(Notification, NotificationRecipient)
        .join(NotificationRecipient, NotificationRecipient.notification_id == Notification.id)
        .where(NotificationRecipient.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    return [(notification, recipient) for notification, recipient in db.execute(stmt).all()]


def unread_count(db: Session, user_id: int) -> int:
    stmt = select(func.count(NotificationRecipient.id)).where(
        NotificationRecipient.user_id == user_id,
        NotificationRecipient.is_read.is_(False),
    )
    return db.execute(stmt).scalar_one()


def list_published(db: Session, *, limit: int = 100) -> list[NotificationStats]:
    """Admin history: newest notifications with recipient and read counts."""

    _check_limit(limit)
    read_count = func.coalesce(
        func.sum(case((NotificationRecipient.is_read.is_(True), 1), else_=0)), 0
    )
    stmt = (
        select(Notification, func.count(NotificationRecipient.id), read_count)
        .outerjoin(NotificationRecipient, NotificationRecipient.notification_id == Notification.id)
        .group_by(Notification.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    return [
        NotificationStats(notification=notification, recipient_count=int(total), read_count=int(read))
        for notification, total, read in db.execute(stmt).all()
    ]
