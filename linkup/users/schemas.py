"""
Users domain — Pydantic V2 schemas shared by the follow lists.
"""
from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field


class UserRef(BaseModel):
    """Minimal public profile embedded in follower / following / request items."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    user_id: uuid.UUID = Field(validation_alias="id")
    username: str
    profile_name: str | None = None
    profile_picture: str | None = None
    is_private: bool = False
    bio: str | None = None
