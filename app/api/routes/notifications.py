"""Notification routes."""

import uuid

from fastapi import APIRouter, Query

from app.api.deps import CurrentUser, DB
from app.schemas.notifications import UnreadCount
from app.services.notification_service import NotificationService
from app.utils.envelopes import api_success

router = APIRouter(tags=["notifications"])


@router.get("/notifications", response_model=dict)
async def list_notifications(
    current_user: CurrentUser,
    db: DB,
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
):
    notifications = await NotificationService.list_notifications(db, current_user.id, unread_only, limit)
    return api_success(
        {"notifications": [NotificationService.to_response(item).model_dump() for item in notifications]}
    )


@router.get("/notifications/unread-count", response_model=dict)
async def get_unread_count(current_user: CurrentUser, db: DB):
    count = await NotificationService.unread_count(db, current_user.id)
    return api_success(UnreadCount(count=count).model_dump())


@router.post("/notifications/read-all", response_model=dict)
async def mark_all_notifications_read(current_user: CurrentUser, db: DB):
    updated = await NotificationService.mark_all_read(db, current_user.id)
    return api_success({"updated": updated})


@router.post("/notifications/{notification_id}/read", response_model=dict)
async def mark_notification_read(notification_id: uuid.UUID, current_user: CurrentUser, db: DB):
    notification = await NotificationService.mark_read(db, current_user.id, notification_id)
    return api_success(NotificationService.to_response(notification).model_dump())
