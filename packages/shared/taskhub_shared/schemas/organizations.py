"""Organization schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, UUID4


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    logo_url: Optional[str] = None


class OrganizationRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID4
    name: str
    logo_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
