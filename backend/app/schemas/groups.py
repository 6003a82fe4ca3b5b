"""Schemas for administering notification targeting groups."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr

from app.services.groups import GROUP_DESCRIPTION_MAX_LENGTH, GROUP_NAME_MAX_LENGTH


class GroupCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=GROUP_NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=GROUP_DESCRIPTION_MAX_LENGTH)
    user_ids: list[int] = Field(default_factory=list)


class GroupUpdate(BaseModel):
    """Partial update; a present ``user_ids`` replaces the whole membership."""

    name: constr(strip_whitespace=True, min_length=1, max_length=GROUP_NAME_MAX_LENGTH) | None = None
    description: str | None = Field(default=None, max_length=GROUP_DESCRIPTION_MAX_LENGTH)
    user_ids: list[int] | None = None


class GroupRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    member_ids: list[int]
    created_at: datetime
    updated_at: datetime
