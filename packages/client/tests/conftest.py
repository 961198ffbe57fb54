"""Fixtures for client SDK tests: a fake relay and schema factories."""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from taskhub_shared.schemas.chat import MessageRead
from taskhub_shared.schemas.projects import BoardColumn, BoardRead
from taskhub_shared.schemas.tasks import TaskRead

PROJECT_ID = uuid.uuid4()
USER_ID = uuid.uuid4()


@pytest.fixture
def project_id():
    return PROJECT_ID


@pytest.fixture
def relay():
    """RelayConnection stand-in that records handlers and emits."""
    fake = MagicMock()
    fake.handlers = {}
    fake.on.side_effect = lambda event, handler: fake.handlers.setdefault(event, []).append(handler)
    fake.off.side_effect = lambda event, handler: fake.handlers.get(event, []).remove(handler)
    fake.emit = AsyncMock(return_value=True)
    fake.join_project = AsyncMock(return_value=True)
    fake.leave_project = AsyncMock(return_value=True)
    return fake


@pytest.fixture
def make_task():
    def factory(**overrides):
        now = datetime.now(timezone.utc)
        data = {
            "id": uuid.uuid4(),
            "project_id": PROJECT_ID,
            "title": "Write docs",
            "status": "todo",
            "priority": "medium",
            "created_by_id": USER_ID,
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return TaskRead.model_validate(data)
    return factory


@pytest.fixture
def make_board():
    def factory(tasks):
        columns = {}
        for t in tasks:
            columns.setdefault(t.status.value, []).append(t)
        return BoardRead(
            project_id=PROJECT_ID,
            project_name="Website",
            columns=[BoardColumn(status=s, tasks=ts) for s, ts in columns.items()],
        )
    return factory


@pytest.fixture
def make_message():
    def factory(content="hello", **overrides):
        data = {
            "id": uuid.uuid4(),
            "project_id": PROJECT_ID,
            "user_id": USER_ID,
            "user_name": "Ana",
            "content": content,
            "created_at": datetime.now(timezone.utc),
        }
        data.update(overrides)
        return MessageRead.model_validate(data)
    return factory
