"""Task model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    title: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(default="todo", nullable=False)  # todo | in_progress | review | blocked | done
    priority: str = Field(default="medium", nullable=False)  # low | medium | high | critical
    assignee_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", index=True)
    created_by_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    due_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    completed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    position: int = Field(default=0, nullable=False)
