"""
Project chat endpoints.

Messages are persisted here; live delivery to other members happens through
the relay once the sender emits ``send-message`` with the stored message.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser, require_member
from app.core.database import get_session
from app.models.message import Message
from app.models.user import User
from app.services.projects import get_visible_project_or_404
from taskhub_shared.schemas.chat import MessageCreate, MessageListResponse, MessageRead

log = structlog.get_logger()
router = APIRouter()

HISTORY_LIMIT = 50


@router.get("/{project_id}/messages", response_model=MessageListResponse)
async def list_messages_endpoint(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    """The latest messages in a project, oldest first."""
    project = await get_visible_project_or_404(session, project_id, auth)
    result = await session.execute(
        select(Message, User)
        .join(User, User.id == Message.user_id)
        .where(Message.project_id == project.id)
        .order_by(Message.created_at.desc())
        .limit(HISTORY_LIMIT)
    )
    rows = list(result.all())
    rows.reverse()

    messages = []
    for message, user in rows:
        read = MessageRead.model_validate(message)
        read.user_name = user.display_name
        messages.append(read)
    return MessageListResponse(data=messages)


@router.post("/{project_id}/messages", response_model=MessageRead, status_code=201)
async def send_message_endpoint(
    project_id: uuid.UUID,
    body: MessageCreate,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    project = await get_visible_project_or_404(session, project_id, auth)
    message = Message(project_id=project.id, user_id=auth.user_id, content=body.content)
    session.add(message)
    await session.commit()
    await session.refresh(message)

    log.info("chat.message_sent", project_id=str(project.id), message_id=str(message.id))
    read = MessageRead.model_validate(message)
    read.user_name = auth.user.display_name
    return read
