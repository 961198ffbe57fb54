"""
Team member and custom role endpoints.

GET    /api/v1/members                 List org members (view:team)
PATCH  /api/v1/members/{user_id}/role  Change role (admin only)
DELETE /api/v1/members/{user_id}       Remove from org (remove:member)
GET    /api/v1/roles                   Roles + permission catalog (view:roles)
POST   /api/v1/roles                   Create custom role (manage:roles)
PATCH  /api/v1/roles/{role_id}         Update role (manage:roles)
DELETE /api/v1/roles/{role_id}         Delete custom role (manage:roles)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_admin, require_permission
from app.core.database import get_session
from app.services import members as member_service
from taskhub_shared.permissions import (
    ALL_PERMISSIONS,
    MANAGE_ROLES,
    PERMISSION_DESCRIPTIONS,
    REMOVE_MEMBER,
    VIEW_ROLES,
    VIEW_TEAM,
)
from taskhub_shared.schemas.roles import (
    PermissionRead,
    RoleCreate,
    RoleListResponse,
    RoleRead,
    RoleUpdate,
)
from taskhub_shared.schemas.users import MemberListResponse, MemberRoleUpdate, UserRead

router = APIRouter()


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@router.get("/members", response_model=MemberListResponse, tags=["Members"])
async def list_members_endpoint(
    auth: AuthenticatedUser = Depends(require_permission(VIEW_TEAM)),
    session: AsyncSession = Depends(get_session),
):
    members = await member_service.list_members(session, auth.org_id)
    return MemberListResponse(data=[UserRead.model_validate(m) for m in members])


@router.patch("/members/{user_id}/role", response_model=UserRead, tags=["Members"])
async def update_member_role_endpoint(
    user_id: uuid.UUID,
    body: MemberRoleUpdate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    member = await member_service.get_member_or_404(session, user_id, auth.org_id)
    member = await member_service.update_member_role(session, member, body.role, auth.org_id)
    await session.commit()
    await session.refresh(member)
    return member


@router.delete("/members/{user_id}", status_code=204, tags=["Members"])
async def remove_member_endpoint(
    user_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(REMOVE_MEMBER)),
    session: AsyncSession = Depends(get_session),
):
    member = await member_service.get_member_or_404(session, user_id, auth.org_id)
    await member_service.remove_member(session, member, auth)
    await session.commit()


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


@router.get("/roles", response_model=RoleListResponse, tags=["Roles"])
async def list_roles_endpoint(
    auth: AuthenticatedUser = Depends(require_permission(VIEW_ROLES)),
    session: AsyncSession = Depends(get_session),
):
    roles = await member_service.list_roles(session, auth.org_id)
    await session.commit()
    return RoleListResponse(
        roles=[await member_service.enrich_role(session, r) for r in roles],
        permissions=[
            PermissionRead(action=a, description=PERMISSION_DESCRIPTIONS[a])
            for a in ALL_PERMISSIONS
        ],
    )


@router.post("/roles", response_model=RoleRead, status_code=201, tags=["Roles"])
async def create_role_endpoint(
    body: RoleCreate,
    auth: AuthenticatedUser = Depends(require_permission(MANAGE_ROLES)),
    session: AsyncSession = Depends(get_session),
):
    role = await member_service.create_role(session, body, auth.org_id)
    await session.commit()
    await session.refresh(role)
    return await member_service.enrich_role(session, role)


@router.patch("/roles/{role_id}", response_model=RoleRead, tags=["Roles"])
async def update_role_endpoint(
    role_id: uuid.UUID,
    body: RoleUpdate,
    auth: AuthenticatedUser = Depends(require_permission(MANAGE_ROLES)),
    session: AsyncSession = Depends(get_session),
):
    role = await member_service.get_role_or_404(session, role_id, auth.org_id)
    role = await member_service.update_role(session, role, body)
    await session.commit()
    await session.refresh(role)
    return await member_service.enrich_role(session, role)


@router.delete("/roles/{role_id}", status_code=204, tags=["Roles"])
async def delete_role_endpoint(
    role_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(MANAGE_ROLES)),
    session: AsyncSession = Depends(get_session),
):
    role = await member_service.get_role_or_404(session, role_id, auth.org_id)
    await member_service.delete_role(session, role)
    await session.commit()
