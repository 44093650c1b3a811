from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from linkup.database import get_db
from linkup.dependencies import get_notification_throttle, require_internal_key
from linkup.notifications import controller as ctrl
from linkup.notifications.schemas import (
    FanoutResponse,
    InternalNotificationRequest,
    InternalReportRequest,
)
from linkup.rate_limit import WindowRateLimiter

router = APIRouter(
    prefix="/notifications/internal",
    tags=["notifications-internal"],
    dependencies=[Depends(require_internal_key)],
)


@router.post(
    "",
    response_model=FanoutResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Internal: notify one user of a content event (like, comment, message, ...).",
)
async def create_notification_internal(
    body: InternalNotificationRequest,
    session: AsyncSession = Depends(get_db),
    throttle: WindowRateLimiter = Depends(get_notification_throttle),
) -> FanoutResponse:
    return await ctrl.ingest_event(body, session, throttle)


@router.post(
    "/reports",
    response_model=FanoutResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Internal: fan a post report out to every admin.",
)
async def report_internal(
    body: InternalReportRequest,
    session: AsyncSession = Depends(get_db),
    throttle: WindowRateLimiter = Depends(get_notification_throttle),
) -> FanoutResponse:
    return await ctrl.ingest_report(body, session, throttle)
