"""Task-related Pydantic schemas for shared use across server and client."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4

from .comments import CommentRead
from .common import TaskPriority, TaskStatus


class TaskSortField(str, Enum):
    CREATED_AT = "created_at"
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    TITLE = "title"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------

class TaskCreate(BaseModel):
    project_id: UUID4
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: Optional[UUID4] = None
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[UUID4] = None
    due_date: Optional[datetime] = None


class TaskStatusUpdate(BaseModel):
    """A kanban move: new column and optional position inside it."""
    status: TaskStatus
    position: Optional[int] = Field(default=None, ge=0)


class TaskRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID4
    project_id: UUID4
    project_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    assignee_id: Optional[UUID4] = None
    assignee_name: Optional[str] = None
    created_by_id: UUID4
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    position: int = 0
    comment_count: int = 0
    created_at: datetime
    updated_at: datetime


class TaskUpdateResult(BaseModel):
    """Result of a metadata edit: the task and the system comment describing it."""
    task: TaskRead
    system_comment: Optional[CommentRead] = None


class TaskListResponse(BaseModel):
    data: List[TaskRead]
