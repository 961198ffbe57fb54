"""Uploaded file model."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class File(UUIDMixin, SQLModel, table=True):
    __tablename__ = "files"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    uploaded_by_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    name: str = Field(nullable=False)
    stored_name: str = Field(nullable=False, unique=True)
    url: str = Field(nullable=False)
    size: int = Field(default=0, nullable=False)
    content_type: str = Field(default="application/octet-stream", nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
