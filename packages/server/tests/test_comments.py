"""Tests for task comments and comment notifications."""

from __future__ import annotations

import pytest


class TestCreateComment:
    @pytest.mark.asyncio
    async def test_manager_comment_notifies_assignee_and_creator(self, client, headers, task, users, relay):
        resp = await client.post(
            f"/api/v1/tasks/{task.id}/comments", headers=headers.manager, json={"content": "Looks good"}
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["type"] == "user"
        assert data["user_name"] == "Max Manager"

        recipients = [call.args[0] for call in relay.notify.await_args_list]
        assert recipients == [users.member.id, users.admin.id]
        _, payload = relay.notify.await_args_list[0].args
        assert payload["title"] == "New comment on Build landing page"
        assert payload["type"] == "comment_added"

    @pytest.mark.asyncio
    async def test_assignee_comment_notifies_only_creator(self, client, headers, task, users, relay):
        await client.post(
            f"/api/v1/tasks/{task.id}/comments", headers=headers.member, json={"content": "On it"}
        )
        assert [call.args[0] for call in relay.notify.await_args_list] == [users.admin.id]

    @pytest.mark.asyncio
    async def test_viewer_cannot_comment(self, client, headers, task):
        resp = await client.post(
            f"/api/v1/tasks/{task.id}/comments", headers=headers.viewer, json={"content": "Hi"}
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_blank_comment_rejected(self, client, headers, task):
        resp = await client.post(
            f"/api/v1/tasks/{task.id}/comments", headers=headers.member, json={"content": ""}
        )
        assert resp.status_code == 422


class TestOwnComments:
    @pytest.fixture
    async def comment_id(self, client, headers, task):
        resp = await client.post(
            f"/api/v1/tasks/{task.id}/comments", headers=headers.member, json={"content": "Draft"}
        )
        return resp.json()["id"]

    @pytest.mark.asyncio
    async def test_author_can_edit_and_delete(self, client, headers, task, comment_id):
        resp = await client.patch(
            f"/api/v1/comments/{comment_id}", headers=headers.member, json={"content": "Final"}
        )
        assert resp.json()["content"] == "Final"

        resp = await client.delete(f"/api/v1/comments/{comment_id}", headers=headers.member)
        assert resp.status_code == 204
        resp = await client.get(f"/api/v1/tasks/{task.id}/comments", headers=headers.member)
        assert resp.json() == []

    @pytest.mark.asyncio
    async def test_others_cannot_edit(self, client, headers, comment_id):
        resp = await client.patch(
            f"/api/v1/comments/{comment_id}", headers=headers.admin, json={"content": "Hijack"}
        )
        assert resp.status_code == 404
        resp = await client.delete(f"/api/v1/comments/{comment_id}", headers=headers.admin)
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_viewer_reads_thread_of_own_project(self, client, headers, task, comment_id):
        resp = await client.get(f"/api/v1/tasks/{task.id}/comments", headers=headers.viewer)
        assert resp.status_code == 200
        assert [c["content"] for c in resp.json()] == ["Draft"]
