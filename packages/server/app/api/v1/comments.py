"""
Comment endpoints.

GET    /api/v1/tasks/{task_id}/comments  Thread for a task
POST   /api/v1/tasks/{task_id}/comments  Add a comment (not viewers)
PATCH  /api/v1/comments/{comment_id}     Edit own comment
DELETE /api/v1/comments/{comment_id}     Delete own comment
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_member, require_permission
from app.core.database import get_session
from app.services.comments import (
    create_comment,
    enrich_comment,
    enrich_comments,
    get_own_comment_or_404,
    list_comments,
)
from app.services.projects import get_visible_project_or_404
from app.services.tasks import get_task_or_404
from taskhub_shared.permissions import VIEW_TASK
from taskhub_shared.schemas.comments import CommentCreate, CommentRead, CommentUpdate

router = APIRouter()


@router.get("/tasks/{task_id}/comments", response_model=List[CommentRead])
async def list_comments_endpoint(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(VIEW_TASK)),
    session: AsyncSession = Depends(get_session),
):
    task = await get_task_or_404(session, task_id, auth.org_id)
    await get_visible_project_or_404(session, task.project_id, auth)
    return await enrich_comments(session, await list_comments(session, task.id))


@router.post("/tasks/{task_id}/comments", response_model=CommentRead, status_code=201)
async def create_comment_endpoint(
    task_id: uuid.UUID,
    body: CommentCreate,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    task = await get_task_or_404(session, task_id, auth.org_id)
    comment = await create_comment(session, task, body, auth)
    return await enrich_comment(session, comment)


@router.patch("/comments/{comment_id}", response_model=CommentRead)
async def update_comment_endpoint(
    comment_id: uuid.UUID,
    body: CommentUpdate,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    comment = await get_own_comment_or_404(session, comment_id, auth)
    comment.content = body.content
    session.add(comment)
    await session.commit()
    await session.refresh(comment)
    return await enrich_comment(session, comment)


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment_endpoint(
    comment_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    comment = await get_own_comment_or_404(session, comment_id, auth)
    await session.delete(comment)
    await session.commit()
