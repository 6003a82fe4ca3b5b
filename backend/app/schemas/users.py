"""Schemas exposing user directory entries."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from app.models import UserRole


class PublicUser(BaseModel):
    """Public profile fragment shown in search results and member lists."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class CurrentUser(PublicUser):
    """The authenticated caller, including their role."""

    role: UserRole
