"""
Shared fixtures for API server tests.

The app runs against in-memory SQLite (aiosqlite, one shared connection)
with the ``get_session`` dependency overridden. Redis revocation and the
realtime relay are replaced with in-process fakes.
"""

from __future__ import annotations

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import bcrypt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core.auth import AuthenticatedUser, create_jwt
from app.core.database import get_session
from app.main import app
from app.models.organization import Organization
from app.models.project import Project
from app.models.task import Task
from app.models.user import User
from app.services.members import ensure_system_roles

PASSWORD = "password123"
# Low bcrypt cost keeps fixtures fast; verify_password accepts any cost
PASSWORD_HASH = bcrypt.hashpw(PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Fakes for Redis and the relay
# ---------------------------------------------------------------------------

@pytest.fixture
def revoked():
    """JTIs revoked during the test."""
    return set()


@pytest.fixture
def relay(revoked):
    """Patch JWT revocation and the relay client; yields the relay fake."""
    async def revoke(jti, ttl_seconds=3600):
        revoked.add(jti)

    async def is_revoked(jti):
        return jti in revoked

    fake = SimpleNamespace(notify=AsyncMock(return_value=True))
    with patch("app.core.auth.is_jwt_revoked", side_effect=is_revoked), \
            patch("app.api.v1.auth.is_jwt_revoked", side_effect=is_revoked), \
            patch("app.api.v1.auth.revoke_jwt", side_effect=revoke), \
            patch("app.services.notifications.get_relay_client", return_value=fake):
        yield fake


@pytest.fixture
async def client(session_factory, relay):
    async def override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

def bearer(user: User) -> dict[str, str]:
    token, _ = create_jwt(user.id, user.organization_id, user.role)
    return {"Authorization": f"Bearer {token}"}


async def add_user(session, org, role="member", email=None, **fields) -> User:
    user = User(
        email=email or f"{role}-{uuid.uuid4().hex[:6]}@example.com",
        full_name=fields.pop("full_name", role.title()),
        password_hash=PASSWORD_HASH,
        organization_id=org.id if org else None,
        role=role,
        **fields,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest.fixture
async def org(session):
    org = Organization(name="Acme Studio")
    session.add(org)
    await session.flush()
    await ensure_system_roles(session, org.id)
    await session.commit()
    return org


@pytest.fixture
async def users(session, org):
    """One user per built-in role, keyed by role name."""
    return SimpleNamespace(
        admin=await add_user(session, org, "admin", email="admin@example.com", full_name="Ada Admin"),
        manager=await add_user(session, org, "manager", email="manager@example.com", full_name="Max Manager"),
        member=await add_user(session, org, "member", email="member@example.com", full_name="Mia Member"),
        viewer=await add_user(session, org, "viewer", email="client@example.com", full_name="Cal Client"),
    )


@pytest.fixture
def headers(users):
    return SimpleNamespace(**{role: bearer(u) for role, u in vars(users).items()})


@pytest.fixture
async def project(session, org, users):
    project = Project(
        organization_id=org.id,
        name="Website Redesign",
        client_name="Globex",
        client_email="client@example.com",
        total_amount=1000.0,
        advance_amount=400.0,
        created_by_id=users.admin.id,
    )
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return project


@pytest.fixture
async def task(session, project, users):
    task = Task(
        project_id=project.id,
        title="Build landing page",
        status="todo",
        priority="medium",
        assignee_id=users.member.id,
        created_by_id=users.admin.id,
        position=0,
    )
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return task


def auth_for(user: User, org: Organization, custom_role=None) -> AuthenticatedUser:
    return AuthenticatedUser(user=user, org=org, custom_role=custom_role)


@pytest.fixture
def make_user(session):
    async def factory(org, role="member", **fields):
        return await add_user(session, org, role, **fields)
    return factory


@pytest.fixture
def token_headers():
    return bearer


@pytest.fixture
def make_auth():
    return auth_for
