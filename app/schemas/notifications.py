"""Notification schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    message: str
    is_read: bool
    data: Optional[dict[str, Any]] = None
    created_at: datetime


class UnreadCount(BaseModel):
    count: int
