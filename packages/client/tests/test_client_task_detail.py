"""Tests for task metadata edits."""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from taskhub_client.api import APIError
from taskhub_client.task_detail import TaskDetail
from taskhub_shared.schemas.comments import CommentRead
from taskhub_shared.schemas.tasks import TaskUpdateResult


@pytest.fixture
def task(make_task):
    return make_task(title="Fix login", status="todo", priority="low")


@pytest.fixture
def api(task):
    return MagicMock(
        get_task=AsyncMock(return_value=task),
        list_comments=AsyncMock(return_value=[]),
        update_task=AsyncMock(),
    )


@pytest.fixture
async def detail(api, relay, task):
    d = TaskDetail(api, relay, task.id)
    await d.refresh()
    return d


def _comment(task):
    now = datetime.now(timezone.utc)
    return CommentRead(
        id=uuid.uuid4(),
        task_id=task.id,
        user_id=task.created_by_id,
        content="Ana changed priority from low to high",
        type="system",
        created_at=now,
        updated_at=now,
    )


async def test_update_sends_full_task_with_changed_field(detail, api, task):
    api.update_task.return_value = TaskUpdateResult(task=task, system_comment=None)

    await detail.update_field("priority", "high")

    task_id, update = api.update_task.await_args.args
    assert task_id == str(task.id)
    assert update.title == "Fix login"
    assert update.status == "todo"
    assert update.priority == "high"


async def test_update_emits_comment_then_task_updated_and_refetches(detail, api, relay, task):
    comment = _comment(task)
    api.update_task.return_value = TaskUpdateResult(task=task, system_comment=comment)
    api.get_task.reset_mock()

    result = await detail.update_field("priority", "high")

    assert result == comment
    events = [c.args[0] for c in relay.emit.await_args_list]
    assert events == ["task-comment", "task-updated"]
    comment_payload = relay.emit.await_args_list[0].args[1]
    assert comment_payload["projectId"] == str(task.project_id)
    assert comment_payload["type"] == "system"
    update_payload = relay.emit.await_args_list[1].args[1]
    assert update_payload["taskId"] == str(task.id)
    assert update_payload["priority"] == "high"
    api.get_task.assert_awaited_once()


async def test_update_without_comment_only_emits_task_updated(detail, api, relay, task):
    api.update_task.return_value = TaskUpdateResult(task=task, system_comment=None)
    await detail.update_field("status", "review")
    assert [c.args[0] for c in relay.emit.await_args_list] == ["task-updated"]


async def test_failed_update_emits_nothing(detail, api, relay):
    api.update_task.side_effect = APIError(403, "forbidden")
    with pytest.raises(APIError):
        await detail.update_field("status", "done")
    relay.emit.assert_not_awaited()


async def test_rejects_unknown_field(detail):
    with pytest.raises(ValueError):
        await detail.update_field("title", "New")


async def test_remote_update_for_this_task_refetches(detail, api, task):
    api.get_task.reset_mock()
    await detail.handle_task_updated({"taskId": str(task.id), "projectId": str(task.project_id)})
    api.get_task.assert_awaited_once()


async def test_remote_update_for_other_task_ignored(detail, api):
    api.get_task.reset_mock()
    await detail.handle_task_updated({"taskId": "other", "projectId": "p"})
    api.get_task.assert_not_awaited()
