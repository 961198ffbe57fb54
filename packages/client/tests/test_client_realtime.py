"""Tests for the relay connection wrapper."""

import uuid
from unittest.mock import AsyncMock, MagicMock

from taskhub_client.board import KanbanBoard
from taskhub_client.realtime import RelayConnection
from taskhub_client.task_detail import TaskDetail


def _conn(connected=True):
    client = MagicMock()
    client.connected = connected
    client.emit = AsyncMock()
    client.connect = AsyncMock()
    return RelayConnection("http://relay.test", token="tok", client=client), client


def test_default_client_reconnect_settings():
    conn = RelayConnection("http://relay.test")
    assert conn.sio.reconnection_attempts == 5
    assert conn.sio.reconnection_delay == 1


async def test_connect_uses_websocket_and_token():
    conn, client = _conn()
    await conn.connect()
    client.connect.assert_awaited_once_with(
        "http://relay.test", transports=["websocket"], auth={"token": "tok"}
    )


async def test_emit_skipped_while_disconnected():
    conn, client = _conn(connected=False)
    assert await conn.emit("typing", {"projectId": "p"}) is False
    client.emit.assert_not_awaited()


async def test_join_project_bare_and_with_user():
    conn, client = _conn()
    project_id, user_id = uuid.uuid4(), uuid.uuid4()

    await conn.join_project(project_id)
    client.emit.assert_awaited_with("join-project", str(project_id))

    await conn.join_project(project_id, user_id)
    client.emit.assert_awaited_with(
        "join-project", {"projectId": str(project_id), "userId": str(user_id)}
    )


async def test_leave_and_join_user():
    conn, client = _conn()
    await conn.leave_project("p-1")
    client.emit.assert_awaited_with("leave-project", "p-1")
    await conn.join_user("u-1")
    client.emit.assert_awaited_with("join-user", "u-1")


async def test_leave_waits_for_last_subscriber():
    conn, client = _conn()
    await conn.join_project("p-1")
    await conn.join_project("p-1")

    assert await conn.leave_project("p-1") is False
    client.emit.assert_awaited_with("join-project", "p-1")
    assert await conn.leave_project("p-1") is True
    client.emit.assert_awaited_with("leave-project", "p-1")


async def test_rooms_joined_while_disconnected_are_joined_on_connect():
    conn, client = _conn(connected=False)
    client.on.assert_any_call("connect", conn.handle_connect)

    assert await conn.join_project("p-1", "u-1") is False
    assert await conn.join_user("u-1") is False
    client.emit.assert_not_awaited()

    await conn.handle_connect()

    assert [c.args for c in client.emit.await_args_list] == [
        ("join-project", {"projectId": "p-1", "userId": "u-1"}),
        ("join-user", "u-1"),
    ]


async def test_reconnect_rejoins_only_current_rooms():
    conn, client = _conn()
    await conn.join_project("p-1")
    await conn.join_project("p-2")
    await conn.leave_project("p-2")
    client.emit.reset_mock()

    await conn.handle_connect()

    client.emit.assert_awaited_once_with("join-project", "p-1")


async def test_stores_share_one_connection(make_task, make_board, project_id):
    conn = RelayConnection("http://relay.test")
    assert conn.sio.handlers["/"]["connect"] == conn.handle_connect

    on_board = make_task(title="Design", status="todo")
    elsewhere = make_task(title="Review", status="todo")
    api = MagicMock(
        get_board=AsyncMock(return_value=make_board([on_board])),
        get_task=AsyncMock(return_value=elsewhere),
        list_comments=AsyncMock(return_value=[]),
    )
    board = KanbanBoard(api, conn, project_id)
    await board.load()
    TaskDetail(api, conn, elsewhere.id)

    dispatch = conn.sio.handlers["/"]["task-updated"]
    await dispatch({"taskId": str(on_board.id), "projectId": str(project_id), "status": "done"})

    assert board.tasks[str(on_board.id)].status == "done"
    api.get_task.assert_not_awaited()

    await dispatch({"taskId": str(elsewhere.id), "projectId": str(project_id)})
    api.get_task.assert_awaited_once()


async def test_failing_handler_does_not_block_others():
    conn, client = _conn()
    seen = []

    async def broken(data):
        raise RuntimeError("boom")

    async def record(data):
        seen.append(data)

    conn.on("new-message", broken)
    conn.on("new-message", record)
    dispatch = next(c.args[1] for c in client.on.call_args_list if c.args[0] == "new-message")
    await dispatch({"id": "m1"})

    assert seen == [{"id": "m1"}]


async def test_off_removes_handler():
    conn, client = _conn()
    seen = []

    async def record(data):
        seen.append(data)

    conn.on("user-typing", record)
    conn.off("user-typing", record)
    dispatch = next(c.args[1] for c in client.on.call_args_list if c.args[0] == "user-typing")
    await dispatch({"userId": "u"})

    assert seen == []
