"""Unit tests for the room directory."""

from __future__ import annotations

from itertools import count

import pytest
from sqlalchemy import event, func, select

from app.core.errors import Forbidden, InvalidInput, NotFound
from app.models import ChatRoom, RoomKind, RoomMember, RoomRole
from app.monitoring.metrics import direct_rooms_total, group_rooms_created_total
from app.services import messages as message_service
from app.services import rooms as room_service


def _direct_room_count(db_session) -> int:
    stmt = select(func.count(ChatRoom.id)).where(ChatRoom.is_group.is_(False))
    return db_session.execute(stmt).scalar_one()


def test_direct_room_is_shared_regardless_of_argument_order(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")

    first, created = room_service.get_or_create_direct_room(db_session, alice.id, bob.id)
    second, created_again = room_service.get_or_create_direct_room(db_session, bob.id, alice.id)

    assert created is True
    assert created_again is False
    assert first.id == second.id
    assert _direct_room_count(db_session) == 1
    assert sorted(member.user_id for member in second.members) == sorted([alice.id, bob.id])
    assert direct_rooms_total.value(outcome="created") == 1
    assert direct_rooms_total.value(outcome="existing") == 1


def test_direct_room_race_resolves_to_winner(db_session, make_user, monkeypatch):
    """A creator that loses the insert race returns the room the winner stored."""

    alice = make_user("Alice")
    bob = make_user("Bob")
    winner, _ = room_service.get_or_create_direct_room(db_session, alice.id, bob.id)
    winner_id = winner.id

    original_find = room_service._find_direct_room
    calls = {"count": 0}

    def stale_find(db, low_id, high_id):
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return original_find(db, low_id, high_id)

    monkeypatch.setattr(room_service, "_find_direct_room", stale_find)

    room, created = room_service.get_or_create_direct_room(db_session, bob.id, alice.id)

    assert created is False
    assert room.id == winner_id
    assert calls["count"] == 2
    assert _direct_room_count(db_session) == 1
    assert direct_rooms_total.value(outcome="race") == 1


def test_direct_room_with_self_is_rejected(db_session, make_user):
    alice = make_user("Alice")

    with pytest.raises(InvalidInput):
        room_service.get_or_create_direct_room(db_session, alice.id, alice.id)
    assert _direct_room_count(db_session) == 0


def test_direct_room_with_unknown_user_is_not_found(db_session, make_user):
    alice = make_user("Alice")

    with pytest.raises(NotFound):
        room_service.get_or_create_direct_room(db_session, alice.id, 9999)


def test_direct_room_name_follows_counterpart_rename(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    room, _ = room_service.get_or_create_direct_room(db_session, alice.id, bob.id)
    assert room.display_name == "Alice & Bob"

    bob.name = "Robert"
    db_session.commit()

    summaries = room_service.list_rooms_for_user(db_session, alice.id)
    assert [summary.display_name for summary in summaries] == ["Robert"]
    assert room_service.get_room_for_member(db_session, room.id, bob.id).display_name == "Alice"


def test_create_group_room_makes_creator_owner(db_session, make_user):
    owner = make_user("Owner")

    room = room_service.create_group_room(db_session, owner.id, "  Study circle  ")

    assert room.is_group is True
    assert room.display_name == "Study circle"
    assert [(member.user_id, member.role) for member in room.members] == [
        (owner.id, RoomRole.OWNER)
    ]
    assert group_rooms_created_total.value() == 1


@pytest.mark.parametrize("name", ["", "   ", "x" * 121])
def test_create_group_room_validates_name(db_session, make_user, name):
    owner = make_user("Owner")

    with pytest.raises(InvalidInput):
        room_service.create_group_room(db_session, owner.id, name)


def test_owner_adds_member_idempotently(db_session, make_user):
    owner = make_user("Owner")
    guest = make_user("Guest")
    room = room_service.create_group_room(db_session, owner.id, "Circle")

    first = room_service.add_member(db_session, room.id, owner.id, guest.id)
    second = room_service.add_member(db_session, room.id, owner.id, guest.id)

    assert first.id == second.id
    members = db_session.execute(
        select(func.count(RoomMember.id)).where(RoomMember.room_id == room.id)
    ).scalar_one()
    assert members == 2


def test_member_cannot_add_members(db_session, make_user):
    owner = make_user("Owner")
    member = make_user("Member")
    outsider = make_user("Outsider")
    room = room_service.create_group_room(db_session, owner.id, "Circle")
    room_service.add_member(db_session, room.id, owner.id, member.id)

    with pytest.raises(Forbidden):
        room_service.add_member(db_session, room.id, member.id, outsider.id)


def test_direct_room_membership_is_fixed(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    carol = make_user("Carol")
    room, _ = room_service.get_or_create_direct_room(db_session, alice.id, bob.id)

    with pytest.raises(InvalidInput):
        room_service.add_member(db_session, room.id, alice.id, carol.id)
    with pytest.raises(InvalidInput):
        room_service.remove_member(db_session, room.id, alice.id, alice.id)


def test_member_leaves_but_owner_cannot(db_session, make_user):
    owner = make_user("Owner")
    member = make_user("Member")
    room = room_service.create_group_room(db_session, owner.id, "Circle")
    room_service.add_member(db_session, room.id, owner.id, member.id)

    room_service.remove_member(db_session, room.id, member.id, member.id)
    assert room_service.get_membership(db_session, room.id, member.id) is None

    with pytest.raises(InvalidInput):
        room_service.remove_member(db_session, room.id, owner.id, owner.id)


def test_only_owner_removes_other_members(db_session, make_user):
    owner = make_user("Owner")
    first = make_user("First")
    second = make_user("Second")
    room = room_service.create_group_room(db_session, owner.id, "Circle")
    room_service.add_member(db_session, room.id, owner.id, first.id)
    room_service.add_member(db_session, room.id, owner.id, second.id)

    with pytest.raises(Forbidden):
        room_service.remove_member(db_session, room.id, first.id, second.id)

    room_service.remove_member(db_session, room.id, owner.id, second.id)
    assert room_service.get_membership(db_session, room.id, second.id) is None


def test_non_member_cannot_view_room(db_session, make_user):
    owner = make_user("Owner")
    outsider = make_user("Outsider")
    room = room_service.create_group_room(db_session, owner.id, "Circle")

    with pytest.raises(Forbidden):
        room_service.get_room_for_member(db_session, room.id, outsider.id)
    with pytest.raises(NotFound):
        room_service.get_room_for_member(db_session, 4242, owner.id)


def test_rooms_listed_by_latest_activity_with_kind_filter(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    older = room_service.create_group_room(db_session, alice.id, "Older")
    newer = room_service.create_group_room(db_session, alice.id, "Newer")
    direct, _ = room_service.get_or_create_direct_room(db_session, alice.id, bob.id)

    message_service.post_message(db_session, older.id, alice.id, "bump")

    summaries = room_service.list_rooms_for_user(db_session, alice.id)
    assert [summary.room.id for summary in summaries] == [older.id, direct.id, newer.id]
    assert summaries[0].last_message.content == "bump"
    assert summaries[0].last_message.sender_name == "Alice"

    groups = room_service.list_rooms_for_user(db_session, alice.id, kind=RoomKind.GROUP)
    assert [summary.room.id for summary in groups] == [older.id, newer.id]
    directs = room_service.list_rooms_for_user(db_session, alice.id, kind=RoomKind.DIRECT)
    assert [summary.room.id for summary in directs] == [direct.id]


def test_room_listing_query_count_does_not_grow_with_rooms(db_session, test_engine, make_user):
    owner = make_user("Owner")
    statements: list[str] = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    created = count()

    def create_rooms(total: int) -> None:
        for _ in range(total):
            index = next(created)
            room = room_service.create_group_room(db_session, owner.id, f"Room {index}")
            message_service.post_message(db_session, room.id, owner.id, f"hello {index}")

    def listing_queries() -> int:
        statements.clear()
        event.listen(test_engine, "before_cursor_execute", record)
        try:
            summaries = room_service.list_rooms_for_user(db_session, owner.id)
        finally:
            event.remove(test_engine, "before_cursor_execute", record)
        assert all(summary.last_message is not None for summary in summaries)
        return len(statements)

    create_rooms(2)
    with_two = listing_queries()
    create_rooms(4)
    with_six = listing_queries()

    assert with_six == with_two
    previews = {
        summary.display_name: summary.last_message.content
        for summary in room_service.list_rooms_for_user(db_session, owner.id)
    }
    assert previews["Room 5"] == "hello 5"
