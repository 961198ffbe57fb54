"""Comment schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, UUID4

from .common import CommentType


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=10000)
    file_url: Optional[str] = None
    file_name: Optional[str] = None


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=10000)


class CommentRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID4
    task_id: UUID4
    user_id: UUID4
    user_name: Optional[str] = None
    content: str
    type: CommentType
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
