"""
Social graph domain — enums and limits.
"""
from __future__ import annotations

import enum

# Follower / following lists are returned in one page of at most this many edges
FOLLOW_LIST_LIMIT: int = 100


class FollowStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    # Rejection deletes the row; the value survives for legacy rows and for
    # the conflict message returned when one is encountered.
    REJECTED = "REJECTED"
