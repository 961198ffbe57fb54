"""Custom role schemas."""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4, field_validator

from ..permissions import ALL_PERMISSIONS

_SLUG_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def _check_actions(actions: Optional[List[str]]) -> Optional[List[str]]:
    if actions is None:
        return None
    unknown = sorted(set(actions) - set(ALL_PERMISSIONS))
    if unknown:
        raise ValueError(f"Unknown permissions: {unknown}")
    return sorted(set(actions))


class RoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    display_name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_is_slug(cls, v: str) -> str:
        v = re.sub(r"\s+", "_", v.strip().lower())
        if not _SLUG_RE.match(v):
            raise ValueError("Role name must be lowercase letters, digits, '-' or '_'")
        return v

    @field_validator("permissions")
    @classmethod
    def permissions_known(cls, v: List[str]) -> List[str]:
        return _check_actions(v)


class RoleUpdate(BaseModel):
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: Optional[List[str]] = None

    @field_validator("permissions")
    @classmethod
    def permissions_known(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _check_actions(v)


class RoleRead(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID4
    name: str
    display_name: str
    description: Optional[str] = None
    is_system: bool
    permissions: List[str] = Field(default_factory=list)
    user_count: int = 0


class PermissionRead(BaseModel):
    action: str
    description: str


class RoleListResponse(BaseModel):
    roles: List[RoleRead]
    permissions: List[PermissionRead]
