"""
Tests for projects, customers and dashboard stats.

Tests cover:
- Stats: active/overdue/near-deadline counts, monthly revenue, pending payments
- Customer linking on project creation
- Viewer visibility of client projects
- Delete refused while a project has tasks
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from app.models.customer import Customer
from app.models.project import Project
from app.services.projects import as_utc, compute_stats

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_project(**fields) -> Project:
    fields.setdefault("name", "P")
    fields.setdefault("status", "active")
    fields.setdefault("created_at", NOW - timedelta(days=60))
    return Project(**fields)


# ---------------------------------------------------------------------------
# Unit tests: stats
# ---------------------------------------------------------------------------


class TestComputeStats:
    def test_empty(self):
        stats = compute_stats([], now=NOW)
        assert stats.active_projects == 0
        assert stats.pending_payments == 0.0

    def test_deadline_buckets_only_count_active(self):
        projects = [
            make_project(deadline=NOW - timedelta(days=1)),
            make_project(deadline=NOW + timedelta(days=2)),
            make_project(deadline=NOW + timedelta(days=10)),
            make_project(),
            make_project(status="completed", deadline=NOW - timedelta(days=5)),
        ]
        stats = compute_stats(projects, now=NOW)
        assert stats.active_projects == 4
        assert stats.overdue == 1
        assert stats.near_deadline == 1

    def test_revenue_counts_advances_created_this_month(self):
        projects = [
            make_project(advance_amount=300.0, created_at=datetime(2026, 3, 1, tzinfo=timezone.utc)),
            make_project(advance_amount=200.0, created_at=datetime(2026, 2, 28, tzinfo=timezone.utc)),
            make_project(advance_amount=None, created_at=NOW),
        ]
        assert compute_stats(projects, now=NOW).revenue_this_month == 300.0

    def test_pending_payments_skip_archived_and_settled(self):
        projects = [
            make_project(total_amount=1000.0, advance_amount=400.0),
            make_project(total_amount=500.0, advance_amount=500.0),
            make_project(total_amount=800.0, status="archived"),
            make_project(total_amount=250.0, status="on_hold"),
        ]
        assert compute_stats(projects, now=NOW).pending_payments == 850.0

    def test_naive_datetimes_treated_as_utc(self):
        naive = datetime(2026, 3, 14, 12, 0)
        assert as_utc(naive) == naive.replace(tzinfo=timezone.utc)
        stats = compute_stats([make_project(deadline=naive)], now=NOW)
        assert stats.overdue == 1


# ---------------------------------------------------------------------------
# Integration tests: project endpoints
# ---------------------------------------------------------------------------


class TestProjectEndpoints:
    @pytest.mark.asyncio
    async def test_create_links_existing_customer_case_insensitively(self, client, headers, session, org):
        session.add(Customer(organization_id=org.id, name="Globex Corp", email="ops@globex.test"))
        await session.commit()

        resp = await client.post("/api/v1/projects/", headers=headers.manager, json={
            "name": "Mobile App", "client_name": "  globex corp ",
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "active"

        customers = (await session.execute(
            select(Customer).where(Customer.organization_id == org.id)
        )).scalars().all()
        assert len(customers) == 1
        assert data["customer_id"] == str(customers[0].id)

    @pytest.mark.asyncio
    async def test_create_new_customer_from_client_fields(self, client, headers):
        resp = await client.post("/api/v1/projects/", headers=headers.manager, json={
            "name": "Brand Refresh", "client_name": "Initech", "client_email": "bill@initech.test",
        })
        assert resp.status_code == 201

        resp = await client.get("/api/v1/customers/", headers=headers.manager)
        [customer] = resp.json()
        assert customer["name"] == "Initech"
        assert customer["email"] == "bill@initech.test"
        assert customer["project_count"] == 1

    @pytest.mark.asyncio
    async def test_list_includes_task_counts(self, client, headers, task):
        resp = await client.get("/api/v1/projects/", headers=headers.member)
        [project] = resp.json()
        assert project["task_count"] == 1
        assert project["task_counts"] == {"todo": 1}

    @pytest.mark.asyncio
    async def test_viewer_sees_only_own_client_projects(self, client, headers, session, org, users, project):
        other = Project(organization_id=org.id, name="Secret", client_email="someone@else.test",
                        created_by_id=users.admin.id)
        session.add(other)
        await session.commit()

        resp = await client.get("/api/v1/projects/", headers=headers.viewer)
        assert [p["name"] for p in resp.json()] == ["Website Redesign"]

        resp = await client.get(f"/api/v1/projects/{other.id}", headers=headers.viewer)
        assert resp.status_code == 404
        resp = await client.get(f"/api/v1/projects/{other.id}", headers=headers.member)
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_viewer_sees_projects_through_customer_email(self, client, headers, session, org, users):
        customer = Customer(organization_id=org.id, name="Cal Co", email="CLIENT@example.com")
        session.add(customer)
        await session.flush()
        session.add(Project(organization_id=org.id, name="Linked", customer_id=customer.id,
                            created_by_id=users.admin.id))
        await session.commit()

        resp = await client.get("/api/v1/projects/", headers=headers.viewer)
        assert [p["name"] for p in resp.json()] == ["Linked"]

    @pytest.mark.asyncio
    async def test_status_change(self, client, headers, project):
        resp = await client.patch(
            f"/api/v1/projects/{project.id}/status", headers=headers.manager, json={"status": "on_hold"}
        )
        assert resp.json()["status"] == "on_hold"
        resp = await client.patch(
            f"/api/v1/projects/{project.id}/status", headers=headers.member, json={"status": "active"}
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_refused_with_tasks(self, client, headers, project, task):
        resp = await client.delete(f"/api/v1/projects/{project.id}", headers=headers.admin)
        assert resp.status_code == 409

        await client.delete(f"/api/v1/tasks/{task.id}", headers=headers.admin)
        resp = await client.delete(f"/api/v1/projects/{project.id}", headers=headers.admin)
        assert resp.status_code == 204

    @pytest.mark.asyncio
    async def test_stats_endpoint(self, client, headers, session, project, users):
        project.assigned_lead_id = users.manager.id
        project.deadline = datetime.now(timezone.utc) + timedelta(days=1)
        session.add(project)
        await session.commit()

        resp = await client.get("/api/v1/projects/stats", headers=headers.manager)
        assert resp.status_code == 200
        data = resp.json()
        assert data["active_projects"] == 1
        assert data["near_deadline"] == 1
        assert data["pending_payments"] == 600.0
        assert data["revenue_this_month"] == 400.0
        assert data["workload"][0]["email"] == "manager@example.com"
        assert data["workload"][0]["active_projects"] == 1

        resp = await client.get("/api/v1/projects/stats", headers=headers.member)
        assert resp.status_code == 403


class TestCustomers:
    @pytest.mark.asyncio
    async def test_delete_customer_unlinks_projects(self, client, headers, session, org, users):
        customer = Customer(organization_id=org.id, name="Umbrella")
        session.add(customer)
        await session.flush()
        linked = Project(organization_id=org.id, name="Linked", customer_id=customer.id,
                         created_by_id=users.admin.id)
        session.add(linked)
        await session.commit()

        resp = await client.delete(f"/api/v1/customers/{customer.id}", headers=headers.manager)
        assert resp.status_code == 204

        resp = await client.get(f"/api/v1/projects/{linked.id}", headers=headers.manager)
        assert resp.json()["customer_id"] is None

    @pytest.mark.asyncio
    async def test_member_cannot_manage_customers(self, client, headers):
        resp = await client.post("/api/v1/customers/", headers=headers.member, json={"name": "Nope"})
        assert resp.status_code == 403
