"""Invitation schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, UUID4

from .common import InvitationStatus, Role


class InvitationCreate(BaseModel):
    email: EmailStr
    role: Role = Role.MEMBER


class InvitationRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID4
    organization_id: UUID4
    email: str
    role: str
    token: str
    status: InvitationStatus
    invited_by_id: UUID4
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    created_at: datetime


class InvitationPublic(BaseModel):
    """What an invitee sees when opening an invitation link."""
    email: str
    role: str
    status: InvitationStatus
    organization_name: str
    invited_by_name: Optional[str] = None
    expires_at: datetime
    expired: bool = False


class InvitationListResponse(BaseModel):
    data: List[InvitationRead] = Field(default_factory=list)
