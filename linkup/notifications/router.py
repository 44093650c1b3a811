"""
Notifications domain — user-facing routes.

Routes:
  GET    /notifications                        List my notifications (newest first)
  PUT    /notifications/read                   Mark all of mine read
  GET    /notifications/preferences            Which types I receive
  PUT    /notifications/preferences            Choose which types I receive
  PUT    /notifications/{notification_id}/read Mark one read
  DELETE /notifications/{notification_id}      Delete one

Note: literal paths are registered before /{notification_id}/... so they win.
"""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from linkup.core.auth.dependencies import get_current_user
from linkup.core.models import CurrentUser
from linkup.database import get_db
from linkup.notifications import controller as ctrl
from linkup.notifications.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ReadStatus
from linkup.notifications.schemas import (
    MessageResponse,
    NotificationListResponse,
    NotificationPreferences,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List my notifications",
)
async def list_notifications(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    read_status: ReadStatus = Query(ReadStatus.ALL, description="ALL, READ or UNREAD"),
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> NotificationListResponse:
    return await ctrl.get_notifications(
        current_user.id, session, page=page, limit=limit, read_status=read_status
    )


@router.put(
    "/read",
    response_model=MessageResponse,
    summary="Mark all my notifications as read",
)
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> MessageResponse:
    return await ctrl.mark_all_read(current_user.id, session)


@router.get(
    "/preferences",
    response_model=NotificationPreferences,
    summary="Get my notification preferences",
)
async def get_preferences(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> NotificationPreferences:
    return await ctrl.get_preferences(current_user.id, session)


@router.put(
    "/preferences",
    response_model=NotificationPreferences,
    summary="Update my notification preferences",
    description="Send `null` to receive every notification type.",
)
async def update_preferences(
    body: NotificationPreferences,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> NotificationPreferences:
    return await ctrl.update_preferences(current_user.id, body, session)


@router.put(
    "/{notification_id}/read",
    response_model=MessageResponse,
    summary="Mark a single notification as read",
)
async def mark_read(
    notification_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> MessageResponse:
    return await ctrl.mark_read(current_user.id, notification_id, session)


@router.delete(
    "/{notification_id}",
    response_model=MessageResponse,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> MessageResponse:
    return await ctrl.delete_notification(current_user.id, notification_id, session)
