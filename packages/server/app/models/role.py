"""Custom role model."""

from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Role(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "roles"
    __table_args__ = (sa.UniqueConstraint("organization_id", "name"),)

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    display_name: str = Field(nullable=False)
    description: Optional[str] = None
    is_system: bool = Field(default=False, nullable=False)
    permissions: List[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
