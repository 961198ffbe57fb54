"""
Notification service: persist an in-app notification, then push it to the
recipient through the realtime relay.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.relay import RelayClient, get_relay_client
from app.models.notification import Notification
from taskhub_shared.schemas.common import NotificationType
from taskhub_shared.schemas.notifications import NotificationRead

log = structlog.get_logger()

LIST_LIMIT = 20


async def create_notification(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    title: str,
    message: str,
    type: NotificationType,
    link: Optional[str] = None,
    relay: Optional[RelayClient] = None,
) -> Notification:
    """Store a notification and push it to ``user:<user_id>``.

    The row is committed before the push so a client reacting to the push can
    read it back. Relay failures are logged by the relay client and ignored.
    """
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type.value,
        link=link,
        read=False,
    )
    session.add(notification)
    await session.commit()
    await session.refresh(notification)

    log.info(
        "notification.created",
        notification_id=str(notification.id),
        user_id=str(user_id),
        type=type.value,
    )

    payload = NotificationRead.model_validate(notification).model_dump(mode="json")
    await (relay or get_relay_client()).notify(user_id, payload)
    return notification


async def list_notifications(
    session: AsyncSession, user_id: uuid.UUID, limit: int = LIST_LIMIT
) -> tuple[list[Notification], int]:
    """Latest notifications (newest first) and the unread count."""
    result = await session.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    notifications = list(result.scalars().all())

    unread = await session.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read == False)  # noqa: E712
    )
    return notifications, unread.scalar_one()


async def mark_read(
    session: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[Notification]:
    notification = await session.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        return None
    notification.read = True
    session.add(notification)
    await session.flush()
    return notification


async def mark_all_read(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read == False)  # noqa: E712
        .values(read=True)
    )
    await session.flush()
    return result.rowcount or 0
