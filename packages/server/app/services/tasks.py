"""
Task service layer: business logic for tasks and kanban moves.

Handles:
- Task CRUD scoped to the caller's organization
- Kanban status moves with column positions and completion timestamps
- System comments describing metadata edits
- Assignment and status-change notifications
- Enrichment of task data for API responses
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import structlog
from fastapi import HTTPException
from sqlalchemy import case, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.comment import Comment
from app.models.project import Project
from app.models.task import Task
from app.models.user import User
from app.services.notifications import create_notification
from app.services.projects import get_project_or_404
from taskhub_shared.schemas.common import (
    CommentType,
    NotificationType,
    PRIORITY_RANK,
    TaskPriority,
    TaskStatus,
)
from taskhub_shared.schemas.tasks import (
    SortOrder,
    TaskCreate,
    TaskRead,
    TaskSortField,
    TaskUpdate,
)

log = structlog.get_logger()


def task_link(task_id: uuid.UUID) -> str:
    return f"/dashboard/tasks/{task_id}"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_task_or_404(
    session: AsyncSession, task_id: uuid.UUID, org_id: uuid.UUID
) -> Task:
    task = await session.get(Task, task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    project = await session.get(Project, task.project_id)
    if not project or project.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


async def _check_assignee(
    session: AsyncSession, assignee_id: Optional[uuid.UUID], org_id: uuid.UUID
) -> Optional[User]:
    if assignee_id is None:
        return None
    assignee = await session.get(User, assignee_id)
    if not assignee or assignee.organization_id != org_id:
        raise HTTPException(status_code=422, detail="Assignee is not a member of this organization")
    return assignee


async def _next_position(session: AsyncSession, project_id: uuid.UUID, status: str) -> int:
    result = await session.execute(
        select(func.max(Task.position)).where(
            Task.project_id == project_id, Task.status == status
        )
    )
    current = result.scalar_one_or_none()
    return 0 if current is None else current + 1


async def enrich_tasks(
    session: AsyncSession,
    tasks: Sequence[Task],
    project: Optional[Project] = None,
) -> list[TaskRead]:
    """Convert Task rows to TaskRead with project/assignee names and comment counts."""
    if not tasks:
        return []
    task_ids = [t.id for t in tasks]

    if project is not None:
        project_names = {project.id: project.name}
    else:
        result = await session.execute(
            select(Project.id, Project.name).where(
                Project.id.in_({t.project_id for t in tasks})
            )
        )
        project_names = dict(result.all())

    assignee_ids = {t.assignee_id for t in tasks if t.assignee_id}
    assignee_names: dict[uuid.UUID, str] = {}
    if assignee_ids:
        result = await session.execute(select(User).where(User.id.in_(assignee_ids)))
        assignee_names = {u.id: u.display_name for u in result.scalars().all()}

    result = await session.execute(
        select(Comment.task_id, func.count())
        .where(Comment.task_id.in_(task_ids))
        .group_by(Comment.task_id)
    )
    comment_counts = dict(result.all())

    enriched = []
    for task in tasks:
        read = TaskRead.model_validate(task)
        read.project_name = project_names.get(task.project_id)
        read.assignee_name = assignee_names.get(task.assignee_id) if task.assignee_id else None
        read.comment_count = comment_counts.get(task.id, 0)
        enriched.append(read)
    return enriched


async def enrich_task(session: AsyncSession, task: Task) -> TaskRead:
    return (await enrich_tasks(session, [task]))[0]


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_my_tasks(
    session: AsyncSession,
    auth: AuthenticatedUser,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    search: Optional[str] = None,
    sort_by: TaskSortField = TaskSortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
) -> list[Task]:
    """Tasks assigned to the caller, filtered and sorted."""
    stmt = (
        select(Task)
        .join(Project, Project.id == Task.project_id)
        .where(Task.assignee_id == auth.user_id, Project.organization_id == auth.org_id)
    )
    if status:
        stmt = stmt.where(Task.status == status.value)
    if priority:
        stmt = stmt.where(Task.priority == priority.value)
    if search:
        pattern = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Task.title).like(pattern),
                func.lower(Task.description).like(pattern),
                func.lower(Project.name).like(pattern),
            )
        )

    if sort_by == TaskSortField.PRIORITY:
        column = case(PRIORITY_RANK, value=Task.priority, else_=-1)
    else:
        column = getattr(Task, sort_by.value)
    stmt = stmt.order_by(column.asc() if sort_order == SortOrder.ASC else column.desc())

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_project_tasks(session: AsyncSession, project_id: uuid.UUID) -> list[Task]:
    result = await session.execute(
        select(Task)
        .where(Task.project_id == project_id)
        .order_by(Task.status, Task.position, Task.created_at)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def create_task(
    session: AsyncSession,
    task_in: TaskCreate,
    auth: AuthenticatedUser,
) -> Task:
    project = await get_project_or_404(session, task_in.project_id, auth.org_id)
    assignee = await _check_assignee(session, task_in.assignee_id, auth.org_id)

    task = Task(
        project_id=project.id,
        title=task_in.title,
        description=task_in.description,
        status=task_in.status.value,
        priority=task_in.priority.value,
        assignee_id=task_in.assignee_id,
        created_by_id=auth.user_id,
        due_date=task_in.due_date,
        position=await _next_position(session, project.id, task_in.status.value),
    )
    if task.status == TaskStatus.DONE.value:
        task.completed_at = datetime.now(timezone.utc)
    session.add(task)
    await session.commit()
    await session.refresh(task)

    log.info("task.created", task_id=str(task.id), project_id=str(project.id))

    if assignee and assignee.id != auth.user_id:
        await create_notification(
            session,
            user_id=assignee.id,
            title="New Task Assigned",
            message=f'You have been assigned to task "{task.title}" in {project.name}',
            type=NotificationType.TASK_ASSIGNED,
            link=task_link(task.id),
        )
    return task


async def update_task_status(
    session: AsyncSession,
    task: Task,
    status: TaskStatus,
    auth: AuthenticatedUser,
    position: Optional[int] = None,
) -> Task:
    """Move a task to another kanban column."""
    old_status = task.status
    if status.value != old_status:
        task.position = (
            position if position is not None
            else await _next_position(session, task.project_id, status.value)
        )
    elif position is not None:
        task.position = position

    task.status = status.value
    if status == TaskStatus.DONE and old_status != TaskStatus.DONE.value:
        task.completed_at = datetime.now(timezone.utc)
    elif status != TaskStatus.DONE:
        task.completed_at = None

    task.updated_at = datetime.now(timezone.utc)
    session.add(task)
    await session.commit()
    await session.refresh(task)

    log.info(
        "task.status_updated",
        task_id=str(task.id),
        from_status=old_status,
        to_status=task.status,
        actor_id=str(auth.user_id),
    )

    if task.assignee_id and task.assignee_id != auth.user_id and old_status != task.status:
        await create_notification(
            session,
            user_id=task.assignee_id,
            title="Task Updated",
            message=f'Task "{task.title}" status changed to {task.status}',
            type=NotificationType.TASK_UPDATED,
            link=task_link(task.id),
        )
    return task


def describe_changes(
    actor_name: str,
    old: dict[str, Any],
    new: dict[str, Any],
    assignee_name: Optional[str] = None,
) -> Optional[str]:
    """Human-readable summary of status/priority/assignee changes, or None."""
    updates: list[str] = []
    if "status" in new and new["status"] != old.get("status"):
        updates.append(f"changed status from {old.get('status')} to {new['status']}")
    if "priority" in new and new["priority"] != old.get("priority"):
        updates.append(f"changed priority from {old.get('priority')} to {new['priority']}")
    if "assignee_id" in new and new["assignee_id"] != old.get("assignee_id"):
        if new["assignee_id"]:
            updates.append(f"assigned to {assignee_name or 'user'}")
        else:
            updates.append("removed assignee")
    if not updates:
        return None
    return f"{actor_name} {', '.join(updates)}"


async def update_task(
    session: AsyncSession,
    task: Task,
    task_in: TaskUpdate,
    auth: AuthenticatedUser,
) -> tuple[Task, Optional[Comment]]:
    """Apply a metadata edit. Returns the task and the system comment, if any."""
    data = task_in.model_dump(exclude_unset=True)
    # Required columns: an explicit null leaves the stored value alone.
    if "title" in data and data["title"] is None:
        del data["title"]
    for key in ("status", "priority"):
        if data.get(key) is not None:
            data[key] = data[key].value
        elif key in data:
            del data[key]

    assignee = None
    if "assignee_id" in data:
        assignee = await _check_assignee(session, data["assignee_id"], auth.org_id)

    old = {
        "status": task.status,
        "priority": task.priority,
        "assignee_id": task.assignee_id,
    }
    summary = describe_changes(
        auth.user.display_name,
        old,
        {k: data[k] for k in ("status", "priority", "assignee_id") if k in data},
        assignee_name=assignee.display_name if assignee else None,
    )

    if "status" in data and data["status"] != task.status:
        task.position = await _next_position(session, task.project_id, data["status"])
        if data["status"] == TaskStatus.DONE.value:
            task.completed_at = datetime.now(timezone.utc)
        else:
            task.completed_at = None

    for key, value in data.items():
        if hasattr(task, key):
            setattr(task, key, value)
    task.updated_at = datetime.now(timezone.utc)
    session.add(task)

    system_comment = None
    if summary:
        system_comment = Comment(
            task_id=task.id,
            user_id=auth.user_id,
            content=summary,
            type=CommentType.SYSTEM.value,
        )
        session.add(system_comment)

    await session.commit()
    await session.refresh(task)
    if system_comment:
        await session.refresh(system_comment)

    log.info("task.updated", task_id=str(task.id), fields=sorted(data))

    if assignee and assignee.id != old["assignee_id"] and assignee.id != auth.user_id:
        project = await session.get(Project, task.project_id)
        await create_notification(
            session,
            user_id=assignee.id,
            title="New Task Assigned",
            message=f'You have been assigned to task "{task.title}" in {project.name}',
            type=NotificationType.TASK_ASSIGNED,
            link=task_link(task.id),
        )
    return task, system_comment


async def delete_task(session: AsyncSession, task: Task) -> None:
    result = await session.execute(select(Comment).where(Comment.task_id == task.id))
    for comment in result.scalars().all():
        await session.delete(comment)
    await session.delete(task)
    await session.flush()
    log.info("task.deleted", task_id=str(task.id))
