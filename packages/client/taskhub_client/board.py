"""
Kanban board store with optimistic moves.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from pydantic import ValidationError

from taskhub_shared.events import ClientEvent, ServerEvent
from taskhub_shared.schemas.common import TASK_STATUS_ORDER, TaskStatus
from taskhub_shared.schemas.tasks import TaskRead

from .api import APIError, TaskhubAPI
from .realtime import RelayConnection

log = structlog.get_logger()

REMOTE_FIELDS = ("title", "description", "priority", "assignee_id")


class KanbanBoard:
    """
    Local copy of a project's board.

    A move is applied locally and announced to the project room before the
    API confirms it. If the API rejects the move the previous state is
    restored; otherwise the board is refetched.
    """

    def __init__(self, api: TaskhubAPI, relay: RelayConnection, project_id: Any):
        self.api = api
        self.relay = relay
        self.project_id = str(project_id)
        self.project_name: Optional[str] = None
        self.tasks: dict[str, TaskRead] = {}
        relay.on(ServerEvent.TASK_UPDATED.value, self.handle_task_updated)

    def column(self, status: TaskStatus | str) -> list[TaskRead]:
        status = TaskStatus(status)
        return sorted(
            (t for t in self.tasks.values() if t.status == status),
            key=lambda t: t.position,
        )

    @property
    def columns(self) -> dict[str, list[TaskRead]]:
        return {s.value: self.column(s) for s in TASK_STATUS_ORDER}

    async def load(self) -> None:
        board = await self.api.get_board(self.project_id)
        self.project_name = board.project_name
        self.tasks = {str(t.id): t for col in board.columns for t in col.tasks}

    async def open(self) -> None:
        await self.load()
        await self.relay.join_project(self.project_id)

    async def close(self) -> None:
        self.relay.off(ServerEvent.TASK_UPDATED.value, self.handle_task_updated)
        await self.relay.leave_project(self.project_id)

    async def move_task(self, task_id: Any, status: TaskStatus | str) -> bool:
        """Move a task to another column. Returns False when nothing changed."""
        key = str(task_id)
        status = TaskStatus(status)
        task = self.tasks.get(key)
        if task is None or task.status == status:
            return False

        snapshot = dict(self.tasks)
        self.tasks[key] = task.model_copy(update={"status": status})
        await self.relay.emit(
            ClientEvent.TASK_MOVED.value,
            {"taskId": key, "status": status.value, "projectId": self.project_id},
        )

        try:
            await self.api.update_task_status(key, status.value)
        except APIError as exc:
            self.tasks = snapshot
            log.warning("board.move_failed", task_id=key, status=exc.status_code)
            raise

        await self.load()
        return True

    async def handle_task_updated(self, data: Any) -> None:
        """Apply another client's change to the local copy."""
        if not isinstance(data, dict) or str(data.get("projectId")) != self.project_id:
            return
        key = str(data.get("taskId"))
        task = self.tasks.get(key)
        if task is None:
            return

        changes: dict[str, Any] = {}
        try:
            if data.get("status"):
                changes["status"] = TaskStatus(data["status"])
        except ValueError:
            log.warning("board.unknown_status", task_id=key, status=data.get("status"))
            return
        for field in REMOTE_FIELDS:
            if field in data:
                changes[field] = data[field]
        if "assignee_id" in changes and str(changes["assignee_id"]) != str(task.assignee_id):
            changes["assignee_name"] = None
        if not changes:
            return
        try:
            self.tasks[key] = TaskRead.model_validate({**task.model_dump(), **changes})
        except ValidationError:
            log.warning("board.bad_update", task_id=key)
