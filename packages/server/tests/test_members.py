"""
Tests for team members and custom roles.

Tests cover:
- Role catalog with system roles and user counts
- Custom role create/update/delete rules
- Member role changes (built-in and custom) and removal
"""

from __future__ import annotations

import pytest

from taskhub_shared.permissions import ALL_PERMISSIONS, CREATE_TASK, VIEW_PROJECT, VIEW_TASK


async def create_lead_role(client, headers):
    resp = await client.post("/api/v1/roles", headers=headers.admin, json={
        "name": "Project Lead",
        "display_name": "Project Lead",
        "permissions": [VIEW_TASK, VIEW_PROJECT, CREATE_TASK],
    })
    assert resp.status_code == 201
    return resp.json()


class TestRoles:
    @pytest.mark.asyncio
    async def test_catalog_lists_system_roles(self, client, headers):
        resp = await client.get("/api/v1/roles", headers=headers.admin)
        assert resp.status_code == 200
        data = resp.json()
        roles = {r["name"]: r for r in data["roles"]}
        assert set(roles) == {"admin", "manager", "member", "viewer"}
        assert all(r["is_system"] for r in roles.values())
        assert roles["member"]["user_count"] == 1
        assert [p["action"] for p in data["permissions"]] == list(ALL_PERMISSIONS)

    @pytest.mark.asyncio
    async def test_only_admins_see_roles(self, client, headers):
        resp = await client.get("/api/v1/roles", headers=headers.manager)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_create_custom_role_slugifies_name(self, client, headers):
        role = await create_lead_role(client, headers)
        assert role["name"] == "project_lead"
        assert role["is_system"] is False
        assert role["permissions"] == sorted([VIEW_TASK, VIEW_PROJECT, CREATE_TASK])

    @pytest.mark.asyncio
    async def test_reject_unknown_permission(self, client, headers):
        resp = await client.post("/api/v1/roles", headers=headers.admin, json={
            "name": "bad", "display_name": "Bad", "permissions": ["launch:rockets"],
        })
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_duplicate_and_system_names_conflict(self, client, headers):
        await create_lead_role(client, headers)
        resp = await client.post("/api/v1/roles", headers=headers.admin, json={
            "name": "project_lead", "display_name": "Again",
        })
        assert resp.status_code == 409
        resp = await client.post("/api/v1/roles", headers=headers.admin, json={
            "name": "manager", "display_name": "Manager 2",
        })
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_system_role_permissions_immutable(self, client, headers):
        roles = (await client.get("/api/v1/roles", headers=headers.admin)).json()["roles"]
        viewer = next(r for r in roles if r["name"] == "viewer")

        resp = await client.patch(f"/api/v1/roles/{viewer['id']}", headers=headers.admin, json={
            "permissions": [VIEW_TASK],
        })
        assert resp.status_code == 409

        resp = await client.patch(f"/api/v1/roles/{viewer['id']}", headers=headers.admin, json={
            "display_name": "Client",
        })
        assert resp.status_code == 200
        assert resp.json()["display_name"] == "Client"

        resp = await client.delete(f"/api/v1/roles/{viewer['id']}", headers=headers.admin)
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_role_in_use_cannot_be_deleted(self, client, headers, users):
        role = await create_lead_role(client, headers)
        await client.patch(
            f"/api/v1/members/{users.member.id}/role", headers=headers.admin, json={"role": "project_lead"}
        )
        resp = await client.delete(f"/api/v1/roles/{role['id']}", headers=headers.admin)
        assert resp.status_code == 409

        await client.patch(
            f"/api/v1/members/{users.member.id}/role", headers=headers.admin, json={"role": "member"}
        )
        resp = await client.delete(f"/api/v1/roles/{role['id']}", headers=headers.admin)
        assert resp.status_code == 204


class TestMembers:
    @pytest.mark.asyncio
    async def test_list_members(self, client, headers, users):
        resp = await client.get("/api/v1/members", headers=headers.member)
        assert resp.status_code == 200
        assert len(resp.json()["data"]) == 4

        resp = await client.get("/api/v1/members", headers=headers.viewer)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_custom_role_assignment_grants_its_permissions(self, client, headers, users, token_headers):
        await create_lead_role(client, headers)
        resp = await client.patch(
            f"/api/v1/members/{users.viewer.id}/role", headers=headers.admin, json={"role": "Project_Lead"}
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "member"
        assert resp.json()["role_id"] is not None

        # Custom role grants create:task but not view:team
        resp = await client.get("/api/v1/members", headers=headers.viewer)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_invalid_role_name(self, client, headers, users):
        resp = await client.patch(
            f"/api/v1/members/{users.member.id}/role", headers=headers.admin, json={"role": "wizard"}
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_only_admin_changes_roles(self, client, headers, users):
        resp = await client.patch(
            f"/api/v1/members/{users.member.id}/role", headers=headers.manager, json={"role": "admin"}
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_remove_member(self, client, headers, users):
        resp = await client.delete(f"/api/v1/members/{users.member.id}", headers=headers.manager)
        assert resp.status_code == 204

        resp = await client.get("/api/v1/members", headers=headers.manager)
        assert "member@example.com" not in [m["email"] for m in resp.json()["data"]]

        resp = await client.get("/api/v1/projects/", headers=headers.member)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_remove_rules(self, client, headers, users):
        resp = await client.delete(f"/api/v1/members/{users.manager.id}", headers=headers.manager)
        assert resp.status_code == 409
        resp = await client.delete(f"/api/v1/members/{users.admin.id}", headers=headers.manager)
        assert resp.status_code == 403
