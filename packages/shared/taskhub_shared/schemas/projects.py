"""
Project-related Pydantic schemas.

Covers: project CRUD, status updates, dashboard statistics and the kanban
board view.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, UUID4

from .common import ProjectStatus, TaskPriority
from .tasks import TaskRead


# ---------------------------------------------------------------------------
# Project CRUD
# ---------------------------------------------------------------------------

class ProjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    project_type: Optional[str] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    advance_amount: Optional[float] = Field(default=None, ge=0)
    deadline: Optional[datetime] = None
    assigned_lead_id: Optional[UUID4] = None


class ProjectCreate(ProjectBase):
    customer_id: Optional[UUID4] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    customer_id: Optional[UUID4] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    project_type: Optional[str] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    advance_amount: Optional[float] = Field(default=None, ge=0)
    deadline: Optional[datetime] = None
    assigned_lead_id: Optional[UUID4] = None


class ProjectStatusUpdate(BaseModel):
    status: ProjectStatus


class ProjectRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID4
    organization_id: UUID4
    name: str
    description: Optional[str] = None
    status: ProjectStatus
    priority: str
    customer_id: Optional[UUID4] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    project_type: Optional[str] = None
    total_amount: Optional[float] = None
    advance_amount: Optional[float] = None
    deadline: Optional[datetime] = None
    assigned_lead_id: Optional[UUID4] = None
    created_by_id: UUID4
    task_count: int = 0
    task_counts: Dict[str, int] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Dashboard stats
# ---------------------------------------------------------------------------

class DeveloperWorkload(BaseModel):
    user_id: UUID4
    full_name: Optional[str] = None
    email: str
    active_projects: int


class ProjectStats(BaseModel):
    active_projects: int = 0
    near_deadline: int = 0
    overdue: int = 0
    revenue_this_month: float = 0.0
    pending_payments: float = 0.0
    workload: List[DeveloperWorkload] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Kanban board
# ---------------------------------------------------------------------------

class BoardColumn(BaseModel):
    status: str
    tasks: List[TaskRead] = Field(default_factory=list)


class BoardRead(BaseModel):
    project_id: UUID4
    project_name: str
    columns: List[BoardColumn]
