"""
Task endpoints: CRUD, kanban moves, metadata edits.

Status columns: todo, in_progress, review, blocked, done
- Kanban moves change status (and position) only; assignees are notified
  when someone else moves their task.
- Metadata edits produce a system comment describing what changed; the
  comment is returned so the client can broadcast it to the project room.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_permission
from app.core.database import get_session
from app.services.comments import enrich_comment
from app.services.projects import get_visible_project_or_404
from app.services.tasks import (
    create_task,
    delete_task,
    enrich_task,
    enrich_tasks,
    get_task_or_404,
    list_my_tasks,
    update_task,
    update_task_status,
)
from taskhub_shared.permissions import CREATE_TASK, DELETE_TASK, UPDATE_TASK, VIEW_TASK
from taskhub_shared.schemas.common import TaskPriority, TaskStatus
from taskhub_shared.schemas.tasks import (
    SortOrder,
    TaskCreate,
    TaskRead,
    TaskSortField,
    TaskStatusUpdate,
    TaskUpdate,
    TaskUpdateResult,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[TaskRead])
async def list_my_tasks_endpoint(
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    search: Optional[str] = None,
    sort_by: TaskSortField = TaskSortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
    auth: AuthenticatedUser = Depends(require_permission(VIEW_TASK)),
    session: AsyncSession = Depends(get_session),
):
    """Tasks assigned to the caller, with filters and sorting."""
    tasks = await list_my_tasks(
        session, auth, status=status, priority=priority, search=search,
        sort_by=sort_by, sort_order=sort_order,
    )
    return await enrich_tasks(session, tasks)


@router.post("/", response_model=TaskRead, status_code=201)
async def create_task_endpoint(
    task_in: TaskCreate,
    auth: AuthenticatedUser = Depends(require_permission(CREATE_TASK)),
    session: AsyncSession = Depends(get_session),
):
    task = await create_task(session, task_in, auth)
    return await enrich_task(session, task)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task_endpoint(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(VIEW_TASK)),
    session: AsyncSession = Depends(get_session),
):
    task = await get_task_or_404(session, task_id, auth.org_id)
    await get_visible_project_or_404(session, task.project_id, auth)
    return await enrich_task(session, task)


@router.patch("/{task_id}", response_model=TaskUpdateResult)
async def update_task_endpoint(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    auth: AuthenticatedUser = Depends(require_permission(UPDATE_TASK)),
    session: AsyncSession = Depends(get_session),
):
    """Update task metadata and record a system comment for the change."""
    task = await get_task_or_404(session, task_id, auth.org_id)
    task, system_comment = await update_task(session, task, task_in, auth)
    return TaskUpdateResult(
        task=await enrich_task(session, task),
        system_comment=await enrich_comment(session, system_comment) if system_comment else None,
    )


@router.delete("/{task_id}", status_code=204)
async def delete_task_endpoint(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(DELETE_TASK)),
    session: AsyncSession = Depends(get_session),
):
    task = await get_task_or_404(session, task_id, auth.org_id)
    await delete_task(session, task)
    await session.commit()


# ---------------------------------------------------------------------------
# Kanban moves
# ---------------------------------------------------------------------------


@router.patch("/{task_id}/status", response_model=TaskRead)
async def update_task_status_endpoint(
    task_id: uuid.UUID,
    body: TaskStatusUpdate,
    auth: AuthenticatedUser = Depends(require_permission(UPDATE_TASK)),
    session: AsyncSession = Depends(get_session),
):
    """Move a task to another column."""
    task = await get_task_or_404(session, task_id, auth.org_id)
    task = await update_task_status(session, task, body.status, auth, position=body.position)
    return await enrich_task(session, task)
