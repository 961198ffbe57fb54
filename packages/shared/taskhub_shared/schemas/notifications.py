"""Notification schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, UUID4

from .common import NotificationType


class NotificationRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID4
    user_id: UUID4
    title: str
    message: str
    type: NotificationType
    link: Optional[str] = None
    read: bool = False
    created_at: datetime


class NotificationListResponse(BaseModel):
    data: List[NotificationRead]
    unread_count: int
