"""Unit tests for token verification and role checks."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi import HTTPException

from app.api.deps import get_user_from_token, require_admin
from app.core.errors import Forbidden
from app.core.security import create_access_token, decode_access_token
from app.models import UserRole


@pytest.fixture()
def user(make_user):
    return make_user("Tester")


def test_get_user_from_token(db_session, user):
    """Tokens should resolve to existing users."""

    token = create_access_token({"sub": str(user.id)})
    resolved = get_user_from_token(token, db_session)

    assert resolved.id == user.id
    assert resolved.name == "Tester"


def test_get_user_from_token_invalid_payload(db_session):
    """Invalid tokens must result in a 401 error."""

    with pytest.raises(HTTPException) as exc:
        get_user_from_token("invalid-token", db_session)

    assert exc.value.status_code == 401
    assert "Could not validate credentials" in exc.value.detail


@pytest.mark.parametrize("claims", [{}, {"sub": "not-a-number"}, {"sub": "424242"}])
def test_get_user_from_token_rejects_unusable_subject(db_session, user, claims):
    token = create_access_token(claims)

    with pytest.raises(HTTPException) as exc:
        get_user_from_token(token, db_session)

    assert exc.value.status_code == 401


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "1"}, expires_delta=timedelta(minutes=-1))

    with pytest.raises(HTTPException) as exc:
        decode_access_token(token)

    assert exc.value.detail == "Token has expired"


def test_require_admin_accepts_admin_roles(make_user):
    admin = make_user("Admin", role=UserRole.ADMIN)
    super_admin = make_user("Root", role=UserRole.SUPER_ADMIN)

    assert require_admin(admin) is admin
    assert require_admin(super_admin) is super_admin


def test_require_admin_rejects_regular_user(user):
    with pytest.raises(Forbidden):
        require_admin(user)
