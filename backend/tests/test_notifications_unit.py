"""Unit tests for notification publishing, fan-out and read tracking."""

from __future__ import annotations

import pytest
from sqlalchemy import func, insert, select
from sqlalchemy.exc import OperationalError

from app.core.errors import Internal, InvalidInput, NotFound
from app.models import Notification, NotificationKind, NotificationRecipient, NotificationTargetKind
from app.monitoring.metrics import (
    notification_recipients_created_total,
    notifications_published_total,
    notifications_read_total,
    storage_failures_total,
)
from app.services import groups as group_service
from app.services import notifications as notification_service
from app.services.notifications import AllUsers, GroupTarget, IndividualTarget


def _recipient_ids(db_session, notification_id: int) -> set[int]:
    stmt = select(NotificationRecipient.user_id).where(
        NotificationRecipient.notification_id == notification_id
    )
    return set(db_session.execute(stmt).scalars())


def test_publish_to_all_users_reaches_everyone(db_session, make_user):
    users = [make_user() for _ in range(3)]

    notification = notification_service.publish(
        db_session, "Jumu'ah", "Prayer starts at 13:00", NotificationKind.INFO, AllUsers()
    )

    assert notification.target_kind == NotificationTargetKind.ALL
    assert _recipient_ids(db_session, notification.id) == {user.id for user in users}
    for user in users:
        assert notification_service.unread_count(db_session, user.id) == 1
    assert notifications_published_total.value(target="all") == 1
    assert notification_recipients_created_total.value() == 3


def test_group_audience_is_fixed_at_publish_time(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    carol = make_user("Carol")
    group = group_service.create_group(db_session, "Volunteers", None, [alice.id, bob.id])

    notification = notification_service.publish(
        db_session, "Meeting", "Tonight", "warning", GroupTarget(group_id=group.id)
    )
    group_service.update_group(db_session, group.id, user_ids=[carol.id])

    assert notification.target_group_id == group.id
    assert _recipient_ids(db_session, notification.id) == {alice.id, bob.id}
    assert [row.id for row, _ in notification_service.list_for_user(db_session, alice.id)] == [
        notification.id
    ]
    assert notification_service.list_for_user(db_session, carol.id) == []


def test_individual_target_deduplicates(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")

    notification = notification_service.publish(
        db_session, "Hi", "Hello", "success", IndividualTarget.of([alice.id, bob.id, alice.id])
    )

    assert _recipient_ids(db_session, notification.id) == {alice.id, bob.id}


def test_individual_target_with_unknown_user_is_not_found(db_session, make_user):
    alice = make_user("Alice")

    with pytest.raises(NotFound) as excinfo:
        notification_service.publish(
            db_session, "Hi", "Hello", "info", IndividualTarget.of([alice.id, 31337])
        )

    assert excinfo.value.field == "user_ids"
    assert db_session.execute(select(func.count(Notification.id))).scalar_one() == 0


def test_missing_group_is_not_found(db_session, make_user):
    make_user()

    with pytest.raises(NotFound):
        notification_service.publish(db_session, "Hi", "Hello", "info", GroupTarget(group_id=99))


def test_empty_audience_persists_nothing(db_session):
    group = group_service.create_group(db_session, "Empty")

    with pytest.raises(InvalidInput):
        notification_service.publish(
            db_session, "Hi", "Hello", "info", GroupTarget(group_id=group.id)
        )

    assert db_session.execute(select(func.count(Notification.id))).scalar_one() == 0


@pytest.mark.parametrize(
    ("title", "body", "kind"),
    [
        ("", "body", "info"),
        ("x" * 201, "body", "info"),
        ("title", "   ", "info"),
        ("title", "x" * 2001, "info"),
        ("title", "body", "urgent"),
    ],
)
def test_publish_validates_payload(db_session, make_user, title, body, kind):
    make_user()

    with pytest.raises(InvalidInput):
        notification_service.publish(db_session, title, body, kind, AllUsers())


def test_failed_fan_out_rolls_back_everything(db_session, session_factory, make_user, monkeypatch):
    """A storage failure midway through fan-out leaves no notification behind."""

    for _ in range(3):
        make_user()

    def failing_insert(db, notification_id, user_ids):
        db.execute(
            insert(NotificationRecipient),
            [{"notification_id": notification_id, "user_id": user_ids[0], "is_read": False}],
        )
        raise OperationalError("INSERT INTO notification_recipients", {}, Exception("disk full"))

    monkeypatch.setattr(notification_service, "_insert_recipients", failing_insert)

    with pytest.raises(Internal):
        notification_service.publish(db_session, "Hi", "Hello", "info", AllUsers())

    fresh = session_factory()
    try:
        assert fresh.execute(select(func.count(Notification.id))).scalar_one() == 0
        assert fresh.execute(select(func.count(NotificationRecipient.id))).scalar_one() == 0
    finally:
        fresh.close()
    assert storage_failures_total.value(operation="publish") == 1
    assert notifications_published_total.value(target="all") == 0


def test_mark_read_is_idempotent(db_session, make_user):
    alice = make_user("Alice")
    notification = notification_service.publish(
        db_session, "Hi", "Hello", "info", IndividualTarget.of([alice.id])
    )

    first = notification_service.mark_read(db_session, notification.id, alice.id)
    first_read_at = first.read_at
    second = notification_service.mark_read(db_session, notification.id, alice.id)

    assert second.is_read is True
    assert first_read_at is not None
    assert second.read_at == first_read_at
    assert notifications_read_total.value() == 1
    assert notification_service.unread_count(db_session, alice.id) == 0


def test_mark_read_requires_recipient_row(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    notification = notification_service.publish(
        db_session, "Hi", "Hello", "info", IndividualTarget.of([alice.id])
    )

    with pytest.raises(NotFound):
        notification_service.mark_read(db_session, notification.id, bob.id)
    with pytest.raises(NotFound):
        notification_service.mark_read(db_session, 12345, alice.id)


def test_mark_all_read_flips_only_unread_rows(db_session, make_user):
    alice = make_user("Alice")
    first = notification_service.publish(
        db_session, "One", "Body", "info", IndividualTarget.of([alice.id])
    )
    for title in ("Two", "Three"):
        notification_service.publish(db_session, title, "Body", "info", AllUsers())
    notification_service.mark_read(db_session, first.id, alice.id)

    assert notification_service.mark_all_read(db_session, alice.id) == 2
    assert notification_service.mark_all_read(db_session, alice.id) == 0
    assert notification_service.unread_count(db_session, alice.id) == 0


def test_list_for_user_newest_first_with_limit(db_session, make_user):
    alice = make_user("Alice")
    ids = [
        notification_service.publish(db_session, f"N{index}", "Body", "info", AllUsers()).id
        for index in range(3)
    ]

    rows = notification_service.list_for_user(db_session, alice.id, limit=2)

    assert [notification.id for notification, _ in rows] == [ids[2], ids[1]]
    assert all(recipient.is_read is False for _, recipient in rows)
    with pytest.raises(InvalidInput):
        notification_service.list_for_user(db_session, alice.id, limit=0)


def test_list_published_reports_read_counts(db_session, make_user):
    alice = make_user("Alice")
    make_user("Bob")
    notification = notification_service.publish(db_session, "Hi", "Hello", "info", AllUsers())
    notification_service.mark_read(db_session, notification.id, alice.id)

    [stats] = notification_service.list_published(db_session)

    assert stats.notification.id == notification.id
    assert stats.recipient_count == 2
    assert stats.read_count == 1
