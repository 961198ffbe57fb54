"""Comment service: task discussion threads and comment notifications."""

from __future__ import annotations

import uuid
from typing import Sequence

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.comment import Comment
from app.models.task import Task
from app.models.user import User
from app.services.notifications import create_notification
from app.services.tasks import task_link
from taskhub_shared.schemas.comments import CommentCreate, CommentRead
from taskhub_shared.schemas.common import CommentType, NotificationType

log = structlog.get_logger()


async def enrich_comments(session: AsyncSession, comments: Sequence[Comment]) -> list[CommentRead]:
    user_ids = {c.user_id for c in comments}
    names: dict[uuid.UUID, str] = {}
    if user_ids:
        result = await session.execute(select(User).where(User.id.in_(user_ids)))
        names = {u.id: u.display_name for u in result.scalars().all()}

    enriched = []
    for comment in comments:
        read = CommentRead.model_validate(comment)
        read.user_name = names.get(comment.user_id)
        enriched.append(read)
    return enriched


async def enrich_comment(session: AsyncSession, comment: Comment) -> CommentRead:
    return (await enrich_comments(session, [comment]))[0]


async def list_comments(session: AsyncSession, task_id: uuid.UUID) -> list[Comment]:
    result = await session.execute(
        select(Comment).where(Comment.task_id == task_id).order_by(Comment.created_at)
    )
    return list(result.scalars().all())


async def create_comment(
    session: AsyncSession,
    task: Task,
    comment_in: CommentCreate,
    auth: AuthenticatedUser,
) -> Comment:
    """Add a user comment and notify the task's assignee and creator."""
    if auth.is_viewer:
        raise HTTPException(status_code=403, detail="Viewers cannot comment on tasks")

    comment = Comment(
        task_id=task.id,
        user_id=auth.user_id,
        content=comment_in.content,
        type=CommentType.USER.value,
        file_url=comment_in.file_url,
        file_name=comment_in.file_name,
    )
    session.add(comment)
    await session.commit()
    await session.refresh(comment)

    log.info("comment.created", comment_id=str(comment.id), task_id=str(task.id))

    author = auth.user.display_name
    if task.assignee_id and task.assignee_id != auth.user_id:
        await create_notification(
            session,
            user_id=task.assignee_id,
            title=f"New comment on {task.title}",
            message=f"{author} commented on a task you are assigned to.",
            type=NotificationType.COMMENT_ADDED,
            link=task_link(task.id),
        )
    if task.created_by_id != auth.user_id and task.created_by_id != task.assignee_id:
        await create_notification(
            session,
            user_id=task.created_by_id,
            title=f"New comment on {task.title}",
            message=f"{author} commented on a task you created.",
            type=NotificationType.COMMENT_ADDED,
            link=task_link(task.id),
        )
    return comment


async def get_own_comment_or_404(
    session: AsyncSession, comment_id: uuid.UUID, auth: AuthenticatedUser
) -> Comment:
    """Comments can only be edited or deleted by their author."""
    comment = await session.get(Comment, comment_id)
    if not comment or comment.user_id != auth.user_id:
        raise HTTPException(status_code=404, detail="Comment not found or unauthorized")
    return comment
