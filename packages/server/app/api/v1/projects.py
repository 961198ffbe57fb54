"""
Project endpoints: CRUD, status, dashboard stats and the kanban board.

- Viewers only see projects whose client email matches their own
- Creating a project with a client name links or creates a customer
- Projects with tasks cannot be deleted
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_permission
from app.core.database import get_session
from app.services import projects as project_service
from app.services.tasks import enrich_tasks, list_project_tasks
from taskhub_shared.permissions import (
    CREATE_PROJECT,
    DELETE_PROJECT,
    UPDATE_PROJECT,
    VIEW_PROJECT,
    VIEW_TASK,
)
from taskhub_shared.schemas.common import ProjectStatus
from taskhub_shared.schemas.projects import (
    BoardRead,
    ProjectCreate,
    ProjectRead,
    ProjectStats,
    ProjectStatusUpdate,
    ProjectUpdate,
)
from taskhub_shared.schemas.tasks import TaskRead

router = APIRouter()


# ---------------------------------------------------------------------------
# Project CRUD
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[ProjectRead])
async def list_projects_endpoint(
    status: Optional[ProjectStatus] = None,
    auth: AuthenticatedUser = Depends(require_permission(VIEW_PROJECT)),
    session: AsyncSession = Depends(get_session),
):
    """List projects, most recently updated first."""
    projects = await project_service.list_projects(session, auth, status)
    return await project_service.enrich_projects(session, projects)


@router.get("/stats", response_model=ProjectStats)
async def project_stats_endpoint(
    auth: AuthenticatedUser = Depends(require_permission(UPDATE_PROJECT)),
    session: AsyncSession = Depends(get_session),
):
    """Dashboard figures: deadlines, revenue, pending payments, lead workload."""
    return await project_service.get_project_stats(session, auth.org_id)


@router.post("/", response_model=ProjectRead, status_code=201)
async def create_project_endpoint(
    body: ProjectCreate,
    auth: AuthenticatedUser = Depends(require_permission(CREATE_PROJECT)),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.create_project(session, body, auth)
    await session.commit()
    await session.refresh(project)
    return await project_service.enrich_project(session, project)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project_endpoint(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(VIEW_PROJECT)),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_visible_project_or_404(session, project_id, auth)
    return await project_service.enrich_project(session, project)


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project_endpoint(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    auth: AuthenticatedUser = Depends(require_permission(UPDATE_PROJECT)),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_or_404(session, project_id, auth.org_id)
    project = await project_service.update_project(session, project, body, auth.org_id)
    await session.commit()
    await session.refresh(project)
    return await project_service.enrich_project(session, project)


@router.patch("/{project_id}/status", response_model=ProjectRead)
async def update_project_status_endpoint(
    project_id: uuid.UUID,
    body: ProjectStatusUpdate,
    auth: AuthenticatedUser = Depends(require_permission(UPDATE_PROJECT)),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_or_404(session, project_id, auth.org_id)
    project.status = body.status.value
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return await project_service.enrich_project(session, project)


@router.delete("/{project_id}", status_code=204)
async def delete_project_endpoint(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(DELETE_PROJECT)),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_or_404(session, project_id, auth.org_id)
    await project_service.delete_project(session, project)
    await session.commit()


# ---------------------------------------------------------------------------
# Tasks and board
# ---------------------------------------------------------------------------


@router.get("/{project_id}/tasks", response_model=List[TaskRead])
async def list_project_tasks_endpoint(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(VIEW_TASK)),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_visible_project_or_404(session, project_id, auth)
    tasks = await list_project_tasks(session, project.id)
    return await enrich_tasks(session, tasks, project=project)


@router.get("/{project_id}/board", response_model=BoardRead)
async def get_board_endpoint(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(VIEW_TASK)),
    session: AsyncSession = Depends(get_session),
):
    """Kanban columns in status order, tasks ordered by position."""
    project = await project_service.get_visible_project_or_404(session, project_id, auth)
    return await project_service.get_board(session, project)
