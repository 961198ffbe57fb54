"""
Single task view: metadata edits broadcast to the project room.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from taskhub_shared.events import ClientEvent, ServerEvent
from taskhub_shared.schemas.comments import CommentRead
from taskhub_shared.schemas.tasks import TaskRead, TaskUpdate

from .api import TaskhubAPI
from .realtime import RelayConnection

log = structlog.get_logger()

EDITABLE_FIELDS = ("status", "priority", "assignee_id")


class TaskDetail:
    def __init__(self, api: TaskhubAPI, relay: RelayConnection, task_id: Any):
        self.api = api
        self.relay = relay
        self.task_id = str(task_id)
        self.task: Optional[TaskRead] = None
        self.comments: list[CommentRead] = []
        relay.on(ServerEvent.TASK_UPDATED.value, self.handle_task_updated)

    async def refresh(self) -> None:
        self.task = await self.api.get_task(self.task_id)
        self.comments = await self.api.list_comments(self.task_id)

    async def open(self) -> None:
        await self.refresh()
        await self.relay.join_project(self.task.project_id)

    async def close(self) -> None:
        self.relay.off(ServerEvent.TASK_UPDATED.value, self.handle_task_updated)
        if self.task is not None:
            await self.relay.leave_project(self.task.project_id)

    def _build_update(self, field: str, value: Any) -> TaskUpdate:
        task = self.task
        data = {
            "title": task.title,
            "description": task.description,
            "status": task.status,
            "priority": task.priority,
            "assignee_id": task.assignee_id,
        }
        data[field] = value
        return TaskUpdate(**data)

    async def update_field(self, field: str, value: Any) -> Optional[CommentRead]:
        """Change one of status, priority or assignee_id.

        Returns the system comment recorded for the change, if any. API
        errors propagate without touching local state.
        """
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"{field} is not editable here")
        if self.task is None:
            await self.refresh()

        update = self._build_update(field, value)
        result = await self.api.update_task(self.task_id, update)
        project_id = str(result.task.project_id)

        if result.system_comment:
            await self.relay.emit(
                ClientEvent.TASK_COMMENT.value,
                {**result.system_comment.model_dump(mode="json"), "projectId": project_id},
            )
        await self.relay.emit(
            ClientEvent.TASK_UPDATED.value,
            {**update.model_dump(mode="json"), "taskId": self.task_id, "projectId": project_id},
        )
        await self.refresh()
        return result.system_comment

    async def handle_task_updated(self, data: Any) -> None:
        if isinstance(data, dict) and str(data.get("taskId")) == self.task_id:
            log.debug("task_detail.remote_update", task_id=self.task_id)
            await self.refresh()
