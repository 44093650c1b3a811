"""
Notifications domain — enums and limits.
"""
from __future__ import annotations

import enum

DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100


class NotificationType(str, enum.Enum):
    FOLLOW_REQUEST = "FOLLOW_REQUEST"
    FOLLOW_ACCEPTED = "FOLLOW_ACCEPTED"
    FOLLOW = "FOLLOW"
    LIKE = "LIKE"
    COMMENT = "COMMENT"
    MESSAGE = "MESSAGE"
    STORY_LIKE = "STORY_LIKE"
    REPORT = "REPORT"
    ADMIN_WARNING = "ADMIN_WARNING"


class ReadStatus(str, enum.Enum):
    ALL = "ALL"
    READ = "READ"
    UNREAD = "UNREAD"
