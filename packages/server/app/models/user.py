"""User model."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    password_hash: str = Field(nullable=False)
    organization_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="organizations.id", index=True
    )
    role: str = Field(default="member", nullable=False)  # admin | manager | member | viewer
    # Custom role; takes precedence over ``role`` for permission checks
    role_id: Optional[uuid.UUID] = Field(default=None, foreign_key="roles.id")
    email_notifications: bool = Field(default=True, nullable=False)

    @property
    def display_name(self) -> str:
        return self.full_name or self.email
