"""
Tests for organization invitations.

Tests cover:
- Creating invitations and duplicate/existing-user conflicts
- Public invitation details
- Accepting (new org membership), reuse and expiry
- Cancellation
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.models.invitation import Invitation
from app.services.invitations import is_expired


@pytest.fixture
async def invitation(session, org, users):
    invitation = Invitation(
        organization_id=org.id,
        email="newbie@example.com",
        role="member",
        token="tok-pending",
        invited_by_id=users.admin.id,
        expires_at=datetime.now(timezone.utc) + timedelta(days=7),
    )
    session.add(invitation)
    await session.commit()
    return invitation


class TestExpiry:
    def test_naive_expiry_compared_as_utc(self):
        now = datetime(2026, 5, 1, tzinfo=timezone.utc)
        invitation = Invitation(expires_at=datetime(2026, 4, 30, 23, 59))
        assert is_expired(invitation, now=now)
        invitation.expires_at = datetime(2026, 5, 2)
        assert not is_expired(invitation, now=now)


class TestCreateInvitation:
    @pytest.mark.asyncio
    async def test_manager_invites(self, client, headers, org):
        resp = await client.post("/api/v1/invitations/", headers=headers.manager, json={
            "email": "Designer@Example.com", "role": "member",
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["email"] == "designer@example.com"
        assert data["status"] == "pending"
        assert len(data["token"]) == 64
        assert data["organization_id"] == str(org.id)

        resp = await client.get("/api/v1/invitations/", headers=headers.manager)
        assert [i["email"] for i in resp.json()["data"]] == ["designer@example.com"]

    @pytest.mark.asyncio
    async def test_existing_user_conflict(self, client, headers, users):
        resp = await client.post("/api/v1/invitations/", headers=headers.manager, json={
            "email": "member@example.com",
        })
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_pending_duplicate_conflict(self, client, headers, invitation):
        resp = await client.post("/api/v1/invitations/", headers=headers.manager, json={
            "email": "newbie@example.com",
        })
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_member_cannot_invite(self, client, headers):
        resp = await client.post("/api/v1/invitations/", headers=headers.member, json={
            "email": "x@example.com",
        })
        assert resp.status_code == 403


class TestInvitationLifecycle:
    @pytest.mark.asyncio
    async def test_public_details(self, client, invitation):
        resp = await client.get("/api/v1/invitations/token/tok-pending")
        assert resp.status_code == 200
        data = resp.json()
        assert data["organization_name"] == "Acme Studio"
        assert data["invited_by_name"] == "Ada Admin"
        assert data["expired"] is False

    @pytest.mark.asyncio
    async def test_unknown_token(self, client):
        resp = await client.get("/api/v1/invitations/token/nope")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_accept_moves_user_into_org(self, client, org, make_user, token_headers, invitation):
        newcomer = await make_user(None, "member", email="newbie@example.com")
        auth_headers = token_headers(newcomer)

        resp = await client.post("/api/v1/invitations/token/tok-pending/accept", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "accepted"
        assert resp.json()["accepted_at"] is not None

        resp = await client.get("/auth/me", headers=auth_headers)
        assert resp.json()["organization_id"] == str(org.id)

        resp = await client.post("/api/v1/invitations/token/tok-pending/accept", headers=auth_headers)
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_expired_invitation(self, client, session, make_user, token_headers, invitation):
        invitation.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        session.add(invitation)
        await session.commit()

        resp = await client.get("/api/v1/invitations/token/tok-pending")
        assert resp.json()["expired"] is True

        newcomer = await make_user(None, "member")
        resp = await client.post(
            "/api/v1/invitations/token/tok-pending/accept", headers=token_headers(newcomer)
        )
        assert resp.status_code == 410

    @pytest.mark.asyncio
    async def test_cancel(self, client, headers, invitation):
        resp = await client.delete(f"/api/v1/invitations/{invitation.id}", headers=headers.manager)
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

        resp = await client.delete(f"/api/v1/invitations/{invitation.id}", headers=headers.manager)
        assert resp.status_code == 409

        resp = await client.get("/api/v1/invitations/", headers=headers.manager)
        assert resp.json()["data"] == []
