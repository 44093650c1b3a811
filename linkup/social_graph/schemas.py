"""
Social graph domain — Pydantic V2 request/response schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from linkup.social_graph.constants import FollowStatus
from linkup.users.schemas import UserRef


class _Base(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# ── Follow workflow ────────────────────────────────────────────────────────────

class FollowActionResponse(BaseModel):
    message: str
    status: FollowStatus


class MessageResponse(BaseModel):
    message: str


class AcceptResponse(BaseModel):
    message: str
    accepted_followers: list[UserRef]


class PendingRequestItem(BaseModel):
    request_id: uuid.UUID   # follow_id of the PENDING edge
    user: UserRef           # the requester
    created_at: datetime


class PendingRequestsResponse(BaseModel):
    count: int
    pending_requests: list[PendingRequestItem]


# ── Lists ──────────────────────────────────────────────────────────────────────

class FollowersResponse(BaseModel):
    count: int
    followers: list[UserRef]


class FollowingResponse(BaseModel):
    count: int
    following: list[UserRef]


# ── Privacy ────────────────────────────────────────────────────────────────────

class PrivacyUpdateRequest(_Base):
    is_private: bool


class PrivacyResponse(BaseModel):
    message: str
    is_private: bool
    auto_accepted: int = 0
