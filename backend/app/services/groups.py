"""Administration of user groups used as notification audiences."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.core.errors import InvalidInput, NotFound
from app.database import commit_or_fail
from app.models import UserGroup, UserGroupMember
from app.services.directory import missing_user_ids

logger = logging.getLogger(__name__)

GROUP_NAME_MAX_LENGTH = 200
GROUP_DESCRIPTION_MAX_LENGTH = 1000

UNSET: Any = object()


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned or len(cleaned) > GROUP_NAME_MAX_LENGTH:
        raise InvalidInput(
            f"Group name must be 1-{GROUP_NAME_MAX_LENGTH} characters", field="name"
        )
    return cleaned


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    cleaned = description.strip()
    if len(cleaned) > GROUP_DESCRIPTION_MAX_LENGTH:
        raise InvalidInput(
            f"Description must be at most {GROUP_DESCRIPTION_MAX_LENGTH} characters",
            field="description",
        )
    return cleaned or None


def _validated_user_ids(db: Session, user_ids: Iterable[int]) -> list[int]:
    ids = sorted(set(user_ids))
    missing = missing_user_ids(db, ids)
    if missing:
        raise NotFound(
            f"Unknown user ids: {', '.join(str(item) for item in sorted(missing))}",
            field="user_ids",
        )
    return ids


def list_groups(db: Session) -> list[UserGroup]:
    stmt = (
        select(UserGroup)
        .order_by(UserGroup.created_at.desc(), UserGroup.id.desc())
        .options(selectinload(UserGroup.members))
    )
    return list(db.execute(stmt).scalars())


def get_group(db: Session, group_id: int) -> UserGroup:
    stmt = (
        select(UserGroup)
        .where(UserGroup.id == group_id)
        .options(selectinload(UserGroup.members))
    )
    group = db.execute(stmt).scalar_one_or_none()
    if group is None:
        raise NotFound("Group not found", field="group_id")
    return group


def create_group(
    db: Session,
    name: str,
    description: str | None = None,
    user_ids: Iterable[int] = (),
) -> UserGroup:
    group = UserGroup(name=_clean_name(name), description=_clean_description(description))
    group.members = [
        UserGroupMember(user_id=user_id) for user_id in _validated_user_ids(db, user_ids)
    ]
    db.add(group)
    commit_or_fail(db, "create_group")
    logger.info("Created user group %s with %d members", group.id, len(group.members))
    return get_group(db, group.id)


def update_group(
    db: Session,
    group_id: int,
    *,
    name: str = UNSET,
    description: str | None = UNSET,
    user_ids: Iterable[int] | None = None,
) -> UserGroup:
    """Update group attributes; ``user_ids`` replaces the whole membership.

    The delete of the old members and the insert of the new set share one
    transaction, so concurrent readers observe either the old or the new
    membership and never an empty group.
    """

    group = get_group(db, group_id)
    if name is not UNSET:
        group.name = _clean_name(name)
    if description is not UNSET:
        group.description = _clean_description(description)
    if user_ids is not None:
        new_ids = _validated_user_ids(db, user_ids)
        group.members.clear()
        # old rows must be gone before re-inserting kept members
        db.flush()
        group.members.extend(UserGroupMember(user_id=user_id) for user_id in new_ids)
        logger.info("Replacing membership of group %s with %d members", group.id, len(new_ids))
    db.add(group)
    commit_or_fail(db, "update_group")
    return get_group(db, group_id)


def delete_group(db: Session, group_id: int) -> None:
    group = get_group(db, group_id)
    db.delete(group)
    commit_or_fail(db, "delete_group")
    logger.info("Deleted user group %s", group_id)
