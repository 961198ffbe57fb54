"""
Async REST client for the Taskhub API server.

Covers the operations the realtime stores depend on. Every non-2xx response
is raised as :class:`APIError`.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from taskhub_shared.schemas.chat import MessageListResponse, MessageRead
from taskhub_shared.schemas.comments import CommentRead
from taskhub_shared.schemas.notifications import NotificationListResponse, NotificationRead
from taskhub_shared.schemas.projects import BoardRead
from taskhub_shared.schemas.tasks import TaskRead, TaskUpdate, TaskUpdateResult

log = structlog.get_logger()

API_PREFIX = "/api/v1"


class APIError(Exception):
    """A request the API server answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class TaskhubAPI:
    """
    Bearer-token client. Use as an async context manager or call
    :meth:`close` when done.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "TaskhubAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            resp = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            log.warning("api.request_failed", method=method, path=path, error=str(exc))
            raise APIError(0, str(exc) or exc.__class__.__name__) from exc

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                detail = resp.text
            else:
                detail = body.get("detail", body) if isinstance(body, dict) else body
            log.info("api.error", method=method, path=path, status=resp.status_code)
            raise APIError(resp.status_code, detail)

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # --- Auth ---

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Log in and keep the returned token for later requests."""
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data

    async def me(self) -> dict[str, Any]:
        return await self._request("GET", "/auth/me")

    # --- Board and tasks ---

    async def get_board(self, project_id: Any) -> BoardRead:
        data = await self._request("GET", f"{API_PREFIX}/projects/{project_id}/board")
        return BoardRead.model_validate(data)

    async def get_task(self, task_id: Any) -> TaskRead:
        data = await self._request("GET", f"{API_PREFIX}/tasks/{task_id}")
        return TaskRead.model_validate(data)

    async def update_task_status(
        self, task_id: Any, status: str, position: Optional[int] = None
    ) -> TaskRead:
        body: dict[str, Any] = {"status": status}
        if position is not None:
            body["position"] = position
        data = await self._request("PATCH", f"{API_PREFIX}/tasks/{task_id}/status", json=body)
        return TaskRead.model_validate(data)

    async def update_task(self, task_id: Any, update: TaskUpdate) -> TaskUpdateResult:
        data = await self._request(
            "PATCH",
            f"{API_PREFIX}/tasks/{task_id}",
            json=update.model_dump(mode="json", exclude_unset=True),
        )
        return TaskUpdateResult.model_validate(data)

    # --- Comments ---

    async def list_comments(self, task_id: Any) -> list[CommentRead]:
        data = await self._request("GET", f"{API_PREFIX}/tasks/{task_id}/comments")
        return [CommentRead.model_validate(c) for c in data]

    async def add_comment(self, task_id: Any, content: str) -> CommentRead:
        data = await self._request(
            "POST", f"{API_PREFIX}/tasks/{task_id}/comments", json={"content": content}
        )
        return CommentRead.model_validate(data)

    # --- Chat ---

    async def list_messages(self, project_id: Any) -> list[MessageRead]:
        data = await self._request("GET", f"{API_PREFIX}/projects/{project_id}/messages")
        return MessageListResponse.model_validate(data).data

    async def send_message(self, project_id: Any, content: str) -> MessageRead:
        data = await self._request(
            "POST", f"{API_PREFIX}/projects/{project_id}/messages", json={"content": content}
        )
        return MessageRead.model_validate(data)

    # --- Notifications ---

    async def list_notifications(self) -> NotificationListResponse:
        data = await self._request("GET", f"{API_PREFIX}/notifications/")
        return NotificationListResponse.model_validate(data)

    async def mark_notification_read(self, notification_id: Any) -> NotificationRead:
        data = await self._request("POST", f"{API_PREFIX}/notifications/{notification_id}/read")
        return NotificationRead.model_validate(data)

    async def mark_all_notifications_read(self) -> None:
        await self._request("POST", f"{API_PREFIX}/notifications/read-all")
