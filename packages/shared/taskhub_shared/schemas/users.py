"""User, profile and membership schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ProfileUpdate(BaseModel):
    """Update the current user's own profile."""
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    avatar_url: Optional[str] = None
    email_notifications: Optional[bool] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)


class MemberRoleUpdate(BaseModel):
    """Assign a built-in role name or the slug of a custom role."""
    role: str = Field(min_length=1, max_length=50)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID4
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    organization_id: Optional[UUID4] = None
    role: str
    role_id: Optional[UUID4] = None
    email_notifications: bool = True
    created_at: datetime


class MemberListResponse(BaseModel):
    data: List[UserRead]
