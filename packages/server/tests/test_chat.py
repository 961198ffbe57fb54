"""Tests for project chat history."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.models.message import Message


class TestProjectChat:
    @pytest.mark.asyncio
    async def test_send_and_list(self, client, headers, project):
        resp = await client.post(
            f"/api/v1/projects/{project.id}/messages", headers=headers.member, json={"content": "Hi team"}
        )
        assert resp.status_code == 201
        assert resp.json()["user_name"] == "Mia Member"

        resp = await client.get(f"/api/v1/projects/{project.id}/messages", headers=headers.manager)
        [message] = resp.json()["data"]
        assert message["content"] == "Hi team"
        assert message["project_id"] == str(project.id)

    @pytest.mark.asyncio
    async def test_history_is_latest_fifty_oldest_first(self, client, headers, session, project, users):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        session.add_all([
            Message(project_id=project.id, user_id=users.admin.id, content=f"m{i}",
                    created_at=base + timedelta(seconds=i))
            for i in range(60)
        ])
        await session.commit()

        resp = await client.get(f"/api/v1/projects/{project.id}/messages", headers=headers.member)
        contents = [m["content"] for m in resp.json()["data"]]
        assert len(contents) == 50
        assert contents[0] == "m10"
        assert contents[-1] == "m59"

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, client, headers, project):
        resp = await client.post(
            f"/api/v1/projects/{project.id}/messages", headers=headers.member, json={"content": ""}
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_project(self, client, headers):
        resp = await client.get(
            "/api/v1/projects/00000000-0000-4000-8000-000000000000/messages", headers=headers.member
        )
        assert resp.status_code == 404
