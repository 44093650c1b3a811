"""
LinkUp social service — domain-specific HTTP exceptions.

All exceptions use preset status codes and detail messages so that callers
never need to specify these at the call site.  The exception handlers in
core.middleware.error_handler wrap them in the standard error envelope; any
``extra`` mapping is merged into the envelope's ``error`` object.
"""
from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class LinkUpError(HTTPException):
    extra: dict[str, Any] | None = None


# ── Users ──────────────────────────────────────────────────────────────────────

class UserNotFound(LinkUpError):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")


class PrivateAccount(LinkUpError):
    """Requester is neither the owner nor an accepted follower of a private account."""

    def __init__(self, username: str | None = None) -> None:
        detail = (
            f"This account is private. You must follow @{username} to see this list."
            if username
            else "This account is private."
        )
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


# ── Follow workflow ────────────────────────────────────────────────────────────

class CannotFollowSelf(LinkUpError):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot follow yourself.")


class CannotUnfollowSelf(LinkUpError):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot unfollow yourself.")


_EXISTING_FOLLOW_MESSAGES = {
    "PENDING": "Your follow request is still pending",
    "ACCEPTED": "You are already following this user",
    "REJECTED": "Your previous follow request was rejected",
}


class FollowAlreadyExists(LinkUpError):
    """An edge already exists for the (target, follower) pair."""

    def __init__(self, existing_status: str | None) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=_EXISTING_FOLLOW_MESSAGES.get(existing_status or "", "Already following this user"),
        )
        self.extra = {"status": existing_status} if existing_status else None


class FollowNotFound(LinkUpError):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Follow relationship not found")


class FollowerNotFound(LinkUpError):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Follower relationship not found")


class FollowRequestNotFound(LinkUpError):
    """Missing, owned by someone else, or no longer PENDING — all look the same to the caller."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Follow request not found or already processed",
        )


class FollowRateLimited(LinkUpError):
    def __init__(self, retry_after: int) -> None:
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many follow requests. Please wait before trying again.",
            headers={"Retry-After": str(max(retry_after, 1))},
        )


# ── Notifications ──────────────────────────────────────────────────────────────

class NotificationNotFound(LinkUpError):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")


class NotificationForbidden(LinkUpError):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to modify this notification.",
        )


class InvalidInternalKey(LinkUpError):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid internal API key.")
