"""Read-only lookups against the identity and user-group directories."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.models import User, UserGroup, UserGroupMember


def user_exists(db: Session, user_id: int) -> bool:
    stmt = select(User.id).where(User.id == user_id)
    return db.execute(stmt).scalar_one_or_none() is not None


def require_user(db: Session, user_id: int, *, field: str = "user_id") -> User:
    """Return the user or raise :class:`NotFound` naming the offending field."""

    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found", field=field)
    return user


def user_name(db: Session, user_id: int) -> str | None:
    stmt = select(User.name).where(User.id == user_id)
    return db.execute(stmt).scalar_one_or_none()


def user_names(db: Session, user_ids: Iterable[int]) -> dict[int, str]:
    ids = {user_id for user_id in user_ids if user_id is not None}
    if not ids:
        return {}
    rows = db.execute(select(User.id, User.name).where(User.id.in_(ids)))
    return {row.id: row.name for row in rows}


def missing_user_ids(db: Session, user_ids: Iterable[int]) -> set[int]:
    ids = set(user_ids)
    if not ids:
        return set()
    existing = set(db.execute(select(User.id).where(User.id.in_(ids))).scalars())
    return ids - existing


def all_user_ids(db: Session) -> set[int]:
    return set(db.execute(select(User.id)).scalars())


def group_members(db: Session, group_id: int) -> set[int]:
    """Return the current member ids of a targeting group."""

    if db.get(UserGroup, group_id) is None:
        raise NotFound("Group not found", field="group_id")
    stmt = select(UserGroupMember.user_id).where(UserGroupMember.group_id == group_id)
    return set(db.execute(stmt).scalars())


def search_users(db: Session, query: str, *, exclude_user_id: int, limit: int = 20) -> list[User]:
    """Case-insensitive match on name or email, ordered by name."""

    stmt = select(User).where(User.id != exclude_user_id)
    term = (query or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        stmt = stmt.where(
            or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern))
        )
    stmt = stmt.order_by(User.name.asc(), User.id.asc()).limit(limit)
    return list(db.execute(stmt).scalars())
