"""
Membership and role service.

Handles:
- System role rows seeded per organization
- Custom role CRUD with user counts
- Member role changes and removal rules
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.role import Role
from app.models.user import User
from taskhub_shared.permissions import ROLE_PERMISSIONS
from taskhub_shared.schemas.common import Role as RoleName
from taskhub_shared.schemas.roles import RoleCreate, RoleRead, RoleUpdate

log = structlog.get_logger()

SYSTEM_ROLE_INFO: dict[str, tuple[str, str]] = {
    RoleName.ADMIN.value: ("Administrator", "Full access to the organization"),
    RoleName.MANAGER.value: ("Manager", "Manages projects, tasks, members and customers"),
    RoleName.MEMBER.value: ("Member", "Works on tasks"),
    RoleName.VIEWER.value: ("Viewer", "Read-only access to their own projects"),
}


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


async def ensure_system_roles(session: AsyncSession, org_id: uuid.UUID) -> list[Role]:
    """Create the built-in role rows for an organization if missing."""
    result = await session.execute(
        select(Role).where(Role.organization_id == org_id, Role.is_system == True)  # noqa: E712
    )
    existing = {r.name: r for r in result.scalars().all()}

    roles = []
    for name, (display_name, description) in SYSTEM_ROLE_INFO.items():
        role = existing.get(name)
        if role is None:
            role = Role(
                organization_id=org_id,
                name=name,
                display_name=display_name,
                description=description,
                is_system=True,
                permissions=sorted(ROLE_PERMISSIONS[name]),
            )
            session.add(role)
        roles.append(role)
    await session.flush()
    return roles


async def _user_count(session: AsyncSession, role: Role) -> int:
    stmt = select(func.count()).select_from(User).where(User.organization_id == role.organization_id)
    if role.is_system:
        stmt = stmt.where(User.role == role.name, User.role_id.is_(None))
    else:
        stmt = stmt.where(User.role_id == role.id)
    result = await session.execute(stmt)
    return result.scalar_one()


async def enrich_role(session: AsyncSession, role: Role) -> RoleRead:
    read = RoleRead.model_validate(role)
    read.user_count = await _user_count(session, role)
    return read


async def list_roles(session: AsyncSession, org_id: uuid.UUID) -> list[Role]:
    await ensure_system_roles(session, org_id)
    result = await session.execute(
        select(Role).where(Role.organization_id == org_id).order_by(Role.name)
    )
    return list(result.scalars().all())


async def get_role_or_404(session: AsyncSession, role_id: uuid.UUID, org_id: uuid.UUID) -> Role:
    role = await session.get(Role, role_id)
    if not role or role.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Role not found")
    return role


async def get_role_by_name(session: AsyncSession, name: str, org_id: uuid.UUID) -> Optional[Role]:
    result = await session.execute(
        select(Role).where(Role.organization_id == org_id, Role.name == name.lower())
    )
    return result.scalar_one_or_none()


async def create_role(session: AsyncSession, role_in: RoleCreate, org_id: uuid.UUID) -> Role:
    if role_in.name in SYSTEM_ROLE_INFO or await get_role_by_name(session, role_in.name, org_id):
        raise HTTPException(status_code=409, detail="A role with this name already exists")

    role = Role(
        organization_id=org_id,
        name=role_in.name,
        display_name=role_in.display_name,
        description=role_in.description,
        is_system=False,
        permissions=role_in.permissions,
    )
    session.add(role)
    await session.flush()
    log.info("role.created", role_id=str(role.id), name=role.name)
    return role


async def update_role(session: AsyncSession, role: Role, role_in: RoleUpdate) -> Role:
    data = role_in.model_dump(exclude_unset=True)
    if role.is_system and data.get("permissions") is not None:
        raise HTTPException(status_code=409, detail="Permissions of system roles cannot be changed")

    for key, value in data.items():
        if value is not None or key == "description":
            setattr(role, key, value)
    session.add(role)
    await session.flush()
    return role


async def delete_role(session: AsyncSession, role: Role) -> None:
    if role.is_system:
        raise HTTPException(status_code=409, detail="Cannot delete system roles")
    if await _user_count(session, role) > 0:
        raise HTTPException(status_code=409, detail="Cannot delete role with assigned users")
    await session.delete(role)
    await session.flush()
    log.info("role.deleted", role_id=str(role.id))


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


async def list_members(session: AsyncSession, org_id: uuid.UUID) -> list[User]:
    result = await session.execute(
        select(User).where(User.organization_id == org_id).order_by(User.created_at)
    )
    return list(result.scalars().all())


async def get_member_or_404(session: AsyncSession, user_id: uuid.UUID, org_id: uuid.UUID) -> User:
    member = await session.get(User, user_id)
    if not member or member.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


async def update_member_role(
    session: AsyncSession, member: User, role_name: str, org_id: uuid.UUID
) -> User:
    """Assign a built-in role by name, or a custom role by its slug."""
    role_name = role_name.strip().lower()
    if role_name in SYSTEM_ROLE_INFO:
        member.role = role_name
        member.role_id = None
    else:
        custom = await get_role_by_name(session, role_name, org_id)
        if not custom:
            raise HTTPException(status_code=422, detail="Invalid role")
        member.role = RoleName.MEMBER.value
        member.role_id = custom.id

    session.add(member)
    await session.flush()
    log.info("member.role_updated", user_id=str(member.id), role=role_name)
    return member


async def remove_member(session: AsyncSession, member: User, auth: AuthenticatedUser) -> None:
    if member.id == auth.user_id:
        raise HTTPException(status_code=409, detail="Cannot remove yourself")
    if not auth.is_admin and member.role == RoleName.ADMIN.value:
        raise HTTPException(status_code=403, detail="Only admins can remove admins")

    member.organization_id = None
    member.role = RoleName.MEMBER.value
    member.role_id = None
    session.add(member)
    await session.flush()
    log.info("member.removed", user_id=str(member.id), org_id=str(auth.org_id))
