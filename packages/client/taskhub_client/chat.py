"""
Project chat store with optimistic sends.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ValidationError

from taskhub_shared.events import ClientEvent, ServerEvent
from taskhub_shared.schemas.chat import MessageRead

from .api import APIError, TaskhubAPI
from .realtime import RelayConnection

log = structlog.get_logger()


class ChatMessage(BaseModel):
    """A message as shown locally. ``pending`` until the API confirms it."""
    id: str
    project_id: str
    content: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    created_at: datetime
    pending: bool = False
    failed: bool = False

    @classmethod
    def from_read(cls, msg: MessageRead) -> "ChatMessage":
        return cls(
            id=str(msg.id),
            project_id=str(msg.project_id),
            content=msg.content,
            user_id=str(msg.user_id),
            user_name=msg.user_name,
            created_at=msg.created_at,
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "content": self.content,
            "userId": self.user_id,
            "userName": self.user_name,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "ChatMessage":
        return cls(
            id=str(data["id"]),
            project_id=str(data["projectId"]),
            content=data["content"],
            user_id=data.get("userId"),
            user_name=data.get("userName"),
            created_at=data.get("createdAt") or datetime.now(timezone.utc),
        )


class ProjectChat:
    def __init__(
        self,
        api: TaskhubAPI,
        relay: RelayConnection,
        project_id: Any,
        user_id: Any = None,
        user_name: Optional[str] = None,
    ):
        self.api = api
        self.relay = relay
        self.project_id = str(project_id)
        self.user_id = str(user_id) if user_id else None
        self.user_name = user_name
        self.messages: list[ChatMessage] = []
        relay.on(ServerEvent.NEW_MESSAGE.value, self.handle_new_message)

    async def load(self) -> None:
        self.messages = [ChatMessage.from_read(m) for m in await self.api.list_messages(self.project_id)]

    async def open(self) -> None:
        await self.load()
        await self.relay.join_project(self.project_id)

    async def close(self) -> None:
        self.relay.off(ServerEvent.NEW_MESSAGE.value, self.handle_new_message)
        await self.relay.leave_project(self.project_id)

    async def send(self, content: str) -> Optional[ChatMessage]:
        """Send a message. Blank content is ignored.

        The returned entry is the confirmed message, or the pending entry
        marked ``failed`` when the API rejected it.
        """
        if not content.strip():
            return None

        entry = ChatMessage(
            id=f"temp-{uuid.uuid4().hex[:8]}",
            project_id=self.project_id,
            content=content,
            user_id=self.user_id,
            user_name=self.user_name,
            created_at=datetime.now(timezone.utc),
            pending=True,
        )
        self.messages.append(entry)

        try:
            saved = await self.api.send_message(self.project_id, content)
        except APIError as exc:
            entry.pending = False
            entry.failed = True
            log.warning("chat.send_failed", project_id=self.project_id, status=exc.status_code)
            return entry

        confirmed = ChatMessage.from_read(saved)
        if confirmed.user_name is None:
            confirmed.user_name = self.user_name
        self.messages = [confirmed if m is entry else m for m in self.messages]
        await self.relay.emit(ClientEvent.SEND_MESSAGE.value, confirmed.to_wire())
        return confirmed

    async def handle_new_message(self, data: Any) -> None:
        if not isinstance(data, dict) or str(data.get("projectId")) != self.project_id:
            return
        try:
            msg = ChatMessage.from_wire(data)
        except (KeyError, ValidationError):
            log.warning("chat.bad_message", project_id=self.project_id)
            return
        if any(m.id == msg.id for m in self.messages):
            return
        self.messages.append(msg)
