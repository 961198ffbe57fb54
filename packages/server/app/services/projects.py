"""
Project service layer: business logic for projects and dashboard stats.

Handles:
- Project CRUD with automatic customer linking
- Viewer visibility (client-facing accounts see only their own projects)
- Task counts per project and the kanban board view
- Dashboard statistics (deadlines, revenue, workload)
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.customer import Customer
from app.models.project import Project
from app.models.task import Task
from app.models.user import User
from taskhub_shared.schemas.common import ProjectStatus, TASK_STATUS_ORDER
from taskhub_shared.schemas.projects import (
    BoardColumn,
    BoardRead,
    DeveloperWorkload,
    ProjectCreate,
    ProjectRead,
    ProjectStats,
    ProjectUpdate,
)

NEAR_DEADLINE_DAYS = 3


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite) as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_project_or_404(
    session: AsyncSession, project_id: uuid.UUID, org_id: uuid.UUID
) -> Project:
    project = await session.get(Project, project_id)
    if not project or project.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


async def get_visible_project_or_404(
    session: AsyncSession, project_id: uuid.UUID, auth: AuthenticatedUser
) -> Project:
    """Like get_project_or_404 but also hides other clients' projects from viewers."""
    project = await get_project_or_404(session, project_id, auth.org_id)
    if auth.is_viewer and not await _viewer_can_see(session, project, auth.user.email):
        raise HTTPException(status_code=404, detail="Project not found")
    return project


async def _viewer_can_see(session: AsyncSession, project: Project, email: str) -> bool:
    email = email.lower()
    if project.client_email and project.client_email.lower() == email:
        return True
    if project.customer_id:
        customer = await session.get(Customer, project.customer_id)
        if customer and customer.email and customer.email.lower() == email:
            return True
    return False


async def find_or_create_customer(
    session: AsyncSession,
    org_id: uuid.UUID,
    name: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
) -> Customer:
    """Find a customer by case-insensitive name, creating one if missing."""
    result = await session.execute(
        select(Customer).where(
            Customer.organization_id == org_id,
            func.lower(Customer.name) == name.strip().lower(),
        )
    )
    customer = result.scalars().first()
    if customer:
        return customer

    customer = Customer(
        organization_id=org_id,
        name=name.strip(),
        email=email,
        phone=phone,
    )
    session.add(customer)
    await session.flush()
    return customer


async def _task_counts(
    session: AsyncSession, project_ids: Sequence[uuid.UUID]
) -> dict[uuid.UUID, dict[str, int]]:
    counts: dict[uuid.UUID, dict[str, int]] = defaultdict(dict)
    if not project_ids:
        return counts
    result = await session.execute(
        select(Task.project_id, Task.status, func.count())
        .where(Task.project_id.in_(project_ids))
        .group_by(Task.project_id, Task.status)
    )
    for project_id, status, count in result.all():
        counts[project_id][status] = count
    return counts


def _to_read(project: Project, counts: dict[str, int]) -> ProjectRead:
    read = ProjectRead.model_validate(project)
    read.task_counts = dict(counts)
    read.task_count = sum(counts.values())
    return read


async def enrich_project(session: AsyncSession, project: Project) -> ProjectRead:
    counts = await _task_counts(session, [project.id])
    return _to_read(project, counts.get(project.id, {}))


async def enrich_projects(session: AsyncSession, projects: Sequence[Project]) -> list[ProjectRead]:
    counts = await _task_counts(session, [p.id for p in projects])
    return [_to_read(p, counts.get(p.id, {})) for p in projects]


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def list_projects(
    session: AsyncSession,
    auth: AuthenticatedUser,
    status: Optional[ProjectStatus] = None,
) -> list[Project]:
    stmt = select(Project).where(Project.organization_id == auth.org_id)
    if status:
        stmt = stmt.where(Project.status == status.value)

    if auth.is_viewer:
        email = auth.user.email.lower()
        customer_ids = select(Customer.id).where(
            Customer.organization_id == auth.org_id,
            func.lower(Customer.email) == email,
        )
        stmt = stmt.where(
            or_(
                func.lower(Project.client_email) == email,
                Project.customer_id.in_(customer_ids),
            )
        )

    stmt = stmt.order_by(Project.updated_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _check_lead(session: AsyncSession, lead_id: Optional[uuid.UUID], org_id: uuid.UUID) -> None:
    if lead_id is None:
        return
    lead = await session.get(User, lead_id)
    if not lead or lead.organization_id != org_id:
        raise HTTPException(status_code=422, detail="Assigned lead is not a member of this organization")


async def _check_customer(session: AsyncSession, customer_id: uuid.UUID, org_id: uuid.UUID) -> Customer:
    customer = await session.get(Customer, customer_id)
    if not customer or customer.organization_id != org_id:
        raise HTTPException(status_code=422, detail="Customer not found")
    return customer


async def create_project(
    session: AsyncSession,
    project_in: ProjectCreate,
    auth: AuthenticatedUser,
) -> Project:
    await _check_lead(session, project_in.assigned_lead_id, auth.org_id)

    customer_id = project_in.customer_id
    if customer_id:
        await _check_customer(session, customer_id, auth.org_id)
    elif project_in.client_name and project_in.client_name.strip():
        customer = await find_or_create_customer(
            session,
            auth.org_id,
            project_in.client_name,
            email=project_in.client_email,
            phone=project_in.client_phone,
        )
        customer_id = customer.id

    data = project_in.model_dump(exclude={"customer_id", "priority"})
    project = Project(
        organization_id=auth.org_id,
        created_by_id=auth.user_id,
        customer_id=customer_id,
        priority=project_in.priority.value,
        status=ProjectStatus.ACTIVE.value,
        **data,
    )
    session.add(project)
    await session.flush()
    return project


async def update_project(
    session: AsyncSession,
    project: Project,
    project_in: ProjectUpdate,
    org_id: uuid.UUID,
) -> Project:
    data = project_in.model_dump(exclude_unset=True)

    if "assigned_lead_id" in data:
        await _check_lead(session, data["assigned_lead_id"], org_id)
    if data.get("customer_id"):
        await _check_customer(session, data["customer_id"], org_id)
    if data.get("priority") is not None:
        data["priority"] = data["priority"].value

    for key, value in data.items():
        if hasattr(project, key):
            setattr(project, key, value)

    project.updated_at = datetime.now(timezone.utc)
    session.add(project)
    await session.flush()
    return project


async def delete_project(session: AsyncSession, project: Project) -> None:
    """Delete a project. Refused while it still has tasks."""
    result = await session.execute(
        select(func.count()).select_from(Task).where(Task.project_id == project.id)
    )
    if result.scalar_one() > 0:
        raise HTTPException(
            status_code=409,
            detail="Cannot delete a project that still has tasks. Delete or move them first.",
        )
    await session.delete(project)
    await session.flush()


# ---------------------------------------------------------------------------
# Kanban board
# ---------------------------------------------------------------------------


async def get_board(session: AsyncSession, project: Project) -> BoardRead:
    """Tasks grouped by status column, ordered by position inside each column."""
    from app.services.tasks import enrich_tasks

    result = await session.execute(
        select(Task)
        .where(Task.project_id == project.id)
        .order_by(Task.position, Task.created_at)
    )
    tasks = await enrich_tasks(session, list(result.scalars().all()), project=project)

    columns = {status.value: BoardColumn(status=status.value) for status in TASK_STATUS_ORDER}
    for task in tasks:
        columns[task.status.value].tasks.append(task)

    return BoardRead(
        project_id=project.id,
        project_name=project.name,
        columns=list(columns.values()),
    )


# ---------------------------------------------------------------------------
# Dashboard stats
# ---------------------------------------------------------------------------


def compute_stats(
    projects: Sequence[Project],
    now: Optional[datetime] = None,
) -> ProjectStats:
    """Deadline, revenue and payment figures over an org's projects."""
    now = now or datetime.now(timezone.utc)
    near_limit = now + timedelta(days=NEAR_DEADLINE_DAYS)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    stats = ProjectStats()
    for project in projects:
        is_active = project.status == ProjectStatus.ACTIVE.value
        deadline = as_utc(project.deadline)
        created_at = as_utc(project.created_at)

        if is_active:
            stats.active_projects += 1
            if deadline is not None:
                if deadline < now:
                    stats.overdue += 1
                elif deadline <= near_limit:
                    stats.near_deadline += 1

        if created_at is not None and created_at >= month_start:
            stats.revenue_this_month += project.advance_amount or 0.0

        if project.status != ProjectStatus.ARCHIVED.value:
            outstanding = (project.total_amount or 0.0) - (project.advance_amount or 0.0)
            if outstanding > 0:
                stats.pending_payments += outstanding

    return stats


async def get_project_stats(session: AsyncSession, org_id: uuid.UUID) -> ProjectStats:
    result = await session.execute(
        select(Project).where(Project.organization_id == org_id)
    )
    stats = compute_stats(list(result.scalars().all()))

    # Developer workload: active projects each member leads
    result = await session.execute(
        select(User, func.count(Project.id))
        .join(
            Project,
            (Project.assigned_lead_id == User.id)
            & (Project.status == ProjectStatus.ACTIVE.value)
            & (Project.organization_id == org_id),
            isouter=True,
        )
        .where(User.organization_id == org_id)
        .group_by(User.id)
        .order_by(func.count(Project.id).desc(), User.email)
    )
    stats.workload = [
        DeveloperWorkload(
            user_id=user.id,
            full_name=user.full_name,
            email=user.email,
            active_projects=count,
        )
        for user, count in result.all()
    ]
    return stats
