"""
Realtime relay wire contract.

Event names exchanged over Socket.IO between clients and the relay, the
mapping from client events to the events rebroadcast to a project room, and
the payload models both sides agree on. Payload keys are camelCase on the
wire.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


class ClientEvent(str, Enum):
    """Events a client emits to the relay."""
    JOIN_PROJECT = "join-project"
    LEAVE_PROJECT = "leave-project"
    JOIN_USER = "join-user"
    TASK_MOVED = "task-moved"
    TASK_UPDATED = "task-updated"
    TASK_COMMENT = "task-comment"
    SEND_MESSAGE = "send-message"
    TYPING = "typing"


class ServerEvent(str, Enum):
    """Events the relay emits to clients."""
    TASK_UPDATED = "task-updated"
    TASK_COMMENT = "task-comment"
    NEW_MESSAGE = "new-message"
    USER_TYPING = "user-typing"
    NOTIFICATION = "notification"


# Client event -> event rebroadcast to the rest of the project room
FORWARDED_EVENTS: dict[str, str] = {
    ClientEvent.TASK_MOVED.value: ServerEvent.TASK_UPDATED.value,
    ClientEvent.TASK_UPDATED.value: ServerEvent.TASK_UPDATED.value,
    ClientEvent.TASK_COMMENT.value: ServerEvent.TASK_COMMENT.value,
    ClientEvent.SEND_MESSAGE.value: ServerEvent.NEW_MESSAGE.value,
    ClientEvent.TYPING.value: ServerEvent.USER_TYPING.value,
}


def user_room(user_id: Any) -> str:
    return f"user:{user_id}"


def project_room(project_id: Any) -> str:
    return str(project_id)


def _to_str(v: Any) -> Any:
    if v is None:
        return v
    if isinstance(v, str):
        return v.strip()
    if isinstance(v, (int, uuid.UUID)) and not isinstance(v, bool):
        return str(v)
    raise ValueError("id must be a string, integer or UUID")


# Ids arrive as strings, ints or UUIDs depending on the client
IdStr = Annotated[str, BeforeValidator(_to_str)]


class JoinProject(BaseModel):
    """``join-project`` payload in its object form."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    project_id: IdStr = Field(alias="projectId", min_length=1)
    user_id: Optional[IdStr] = Field(default=None, alias="userId")


class ProjectEvent(BaseModel):
    """Any payload routed to a project room. Extra keys pass through untouched."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    project_id: IdStr = Field(alias="projectId", min_length=1)


class NotifyRequest(BaseModel):
    """Body of the relay's ``POST /notify`` webhook."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: IdStr = Field(alias="userId", min_length=1)
    notification: Any

    @field_validator("notification")
    @classmethod
    def notification_present(cls, v: Any) -> Any:
        # Objects and arrays always count, even when empty
        if v is None or (not isinstance(v, (dict, list)) and not v):
            raise ValueError("notification is required")
        return v
