"""Notification inbox endpoints for the current user."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.models.user import User
from app.services import notifications as notification_service
from taskhub_shared.schemas.notifications import NotificationListResponse, NotificationRead

router = APIRouter()


@router.get("/", response_model=NotificationListResponse)
async def list_notifications_endpoint(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Latest notifications, newest first, with the unread count."""
    notifications, unread = await notification_service.list_notifications(session, user.id)
    return NotificationListResponse(
        data=[NotificationRead.model_validate(n) for n in notifications],
        unread_count=unread,
    )


@router.post("/read-all")
async def mark_all_read_endpoint(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    updated = await notification_service.mark_all_read(session, user.id)
    await session.commit()
    return {"updated": updated}


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read_endpoint(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    notification = await notification_service.mark_read(session, notification_id, user.id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    await session.commit()
    return notification
