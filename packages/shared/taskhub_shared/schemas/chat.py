"""Project chat message schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=4000)


class MessageRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID4
    project_id: UUID4
    user_id: UUID4
    user_name: Optional[str] = None
    content: str
    created_at: datetime


class MessageListResponse(BaseModel):
    data: List[MessageRead]
