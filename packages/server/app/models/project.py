"""Project model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(default="active", nullable=False)  # active | on_hold | completed | archived
    priority: str = Field(default="medium", nullable=False)
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True)
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    project_type: Optional[str] = None
    total_amount: Optional[float] = None
    advance_amount: Optional[float] = None
    deadline: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    assigned_lead_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    created_by_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
