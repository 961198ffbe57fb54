"""
Organization settings and personal profile endpoints.

GET    /api/v1/organization      Current organization
PATCH  /api/v1/organization      Update name/logo (manage:settings)
PATCH  /api/v1/profile           Update own profile
POST   /api/v1/profile/password  Change own password
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    AuthenticatedUser,
    get_current_user,
    hash_password,
    require_member,
    require_permission,
    verify_password,
)
from app.core.database import get_session
from app.models.user import User
from taskhub_shared.permissions import MANAGE_SETTINGS
from taskhub_shared.schemas.organizations import OrganizationRead, OrganizationUpdate
from taskhub_shared.schemas.users import PasswordChange, ProfileUpdate, UserRead

log = structlog.get_logger()
router = APIRouter()


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------


@router.get("/organization", response_model=OrganizationRead, tags=["Organization"])
async def get_organization(auth: AuthenticatedUser = Depends(require_member)):
    return auth.org


@router.patch("/organization", response_model=OrganizationRead, tags=["Organization"])
async def update_organization(
    body: OrganizationUpdate,
    auth: AuthenticatedUser = Depends(require_permission(MANAGE_SETTINGS)),
    session: AsyncSession = Depends(get_session),
):
    """Update organization name or logo."""
    org = auth.org
    for key, value in body.model_dump(exclude_unset=True).items():
        if key == "name" and not value:
            continue
        setattr(org, key, value)
    session.add(org)
    await session.commit()
    await session.refresh(org)
    log.info("organization.updated", org_id=str(org.id))
    return org


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.patch("/profile", response_model=UserRead, tags=["Profile"])
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    for key, value in body.model_dump(exclude_unset=True).items():
        if key == "email_notifications" and value is None:
            continue
        setattr(user, key, value)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@router.post("/profile/password", tags=["Profile"])
async def change_password(
    body: PasswordChange,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Change password. The current password must be supplied."""
    if not verify_password(body.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    user.password_hash = hash_password(body.new_password)
    session.add(user)
    await session.commit()
    log.info("user.password_changed", user_id=str(user.id))
    return {"message": "Password updated"}
