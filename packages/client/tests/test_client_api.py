"""Tests for the REST client using an httpx mock transport."""

import json
import uuid
from datetime import datetime, timezone

import httpx
import pytest

from taskhub_client.api import APIError, TaskhubAPI
from taskhub_shared.schemas.tasks import TaskUpdate

NOW = datetime.now(timezone.utc).isoformat()


def _task_json(task_id, status="todo"):
    return {
        "id": str(task_id),
        "project_id": str(uuid.uuid4()),
        "title": "Ship it",
        "status": status,
        "priority": "high",
        "created_by_id": str(uuid.uuid4()),
        "created_at": NOW,
        "updated_at": NOW,
    }


def _api(handler, token="tok"):
    return TaskhubAPI("http://api.test/", token=token, transport=httpx.MockTransport(handler))


async def test_update_task_status_sends_bearer_and_body():
    task_id = uuid.uuid4()
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_task_json(task_id, "done"))

    async with _api(handler) as api:
        task = await api.update_task_status(task_id, "done")

    assert seen == {
        "method": "PATCH",
        "path": f"/api/v1/tasks/{task_id}/status",
        "auth": "Bearer tok",
        "body": {"status": "done"},
    }
    assert task.status == "done"


async def test_error_response_raises_api_error():
    def handler(request):
        return httpx.Response(403, json={"detail": "Permission 'update:task' required"})

    async with _api(handler) as api:
        with pytest.raises(APIError) as exc:
            await api.update_task_status(uuid.uuid4(), "done")
    assert exc.value.status_code == 403
    assert exc.value.detail == "Permission 'update:task' required"


async def test_non_json_error_keeps_text():
    def handler(request):
        return httpx.Response(502, text="Bad Gateway")

    async with _api(handler) as api:
        with pytest.raises(APIError) as exc:
            await api.get_task(uuid.uuid4())
    assert exc.value.status_code == 502
    assert exc.value.detail == "Bad Gateway"


async def test_transport_error_becomes_api_error():
    def handler(request):
        raise httpx.ConnectError("refused")

    async with _api(handler) as api:
        with pytest.raises(APIError) as exc:
            await api.list_messages(uuid.uuid4())
    assert exc.value.status_code == 0


async def test_login_stores_token():
    def handler(request):
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={
            "user_id": str(uuid.uuid4()),
            "email": "a@example.com",
            "role": "admin",
            "token": "fresh-token",
            "message": "Login successful",
        })

    async with _api(handler, token=None) as api:
        await api.login("a@example.com", "password123")
        assert api.token == "fresh-token"


async def test_update_task_sends_only_set_fields():
    task_id = uuid.uuid4()
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"task": _task_json(task_id, "review"), "system_comment": None})

    async with _api(handler) as api:
        result = await api.update_task(task_id, TaskUpdate(status="review"))

    assert seen["body"] == {"status": "review"}
    assert result.system_comment is None
    assert result.task.status == "review"


async def test_no_content_returns_none():
    def handler(request):
        return httpx.Response(204)

    async with _api(handler) as api:
        assert await api._request("DELETE", "/api/v1/comments/x") is None
