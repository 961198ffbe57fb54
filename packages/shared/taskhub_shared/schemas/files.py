"""Uploaded file schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, UUID4


class FileRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID4
    project_id: UUID4
    uploaded_by_id: UUID4
    name: str
    url: str
    size: int
    content_type: str
    created_at: datetime
