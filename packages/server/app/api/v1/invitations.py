"""
Invitation endpoints.

POST   /api/v1/invitations                       Invite by email (invite:member)
GET    /api/v1/invitations                       Pending invitations (invite:member)
DELETE /api/v1/invitations/{id}                  Cancel (invite:member)
GET    /api/v1/invitations/token/{token}         Public invitation details
POST   /api/v1/invitations/token/{token}/accept  Join the inviting org
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser, get_current_user, require_permission
from app.core.database import get_session
from app.models.invitation import Invitation
from app.models.user import User
from app.services import invitations as invitation_service
from taskhub_shared.permissions import INVITE_MEMBER
from taskhub_shared.schemas.common import InvitationStatus
from taskhub_shared.schemas.invitations import (
    InvitationCreate,
    InvitationListResponse,
    InvitationPublic,
    InvitationRead,
)

router = APIRouter()


@router.post("/", response_model=InvitationRead, status_code=201)
async def create_invitation_endpoint(
    body: InvitationCreate,
    auth: AuthenticatedUser = Depends(require_permission(INVITE_MEMBER)),
    session: AsyncSession = Depends(get_session),
):
    invitation = await invitation_service.create_invitation(session, body, auth)
    await session.commit()
    await session.refresh(invitation)
    return invitation


@router.get("/", response_model=InvitationListResponse)
async def list_invitations_endpoint(
    auth: AuthenticatedUser = Depends(require_permission(INVITE_MEMBER)),
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(
        select(Invitation)
        .where(
            Invitation.organization_id == auth.org_id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .order_by(Invitation.created_at.desc())
    )
    return InvitationListResponse(
        data=[InvitationRead.model_validate(i) for i in result.scalars().all()]
    )


@router.delete("/{invitation_id}", response_model=InvitationRead)
async def cancel_invitation_endpoint(
    invitation_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(INVITE_MEMBER)),
    session: AsyncSession = Depends(get_session),
):
    invitation = await invitation_service.cancel_invitation(session, invitation_id, auth.org_id)
    await session.commit()
    return invitation


@router.get("/token/{token}", response_model=InvitationPublic)
async def get_invitation_endpoint(
    token: str,
    session: AsyncSession = Depends(get_session),
):
    """Invitation details for the accept page. No authentication required."""
    invitation = await invitation_service.get_invitation_by_token_or_404(session, token)
    return await invitation_service.describe_invitation(session, invitation)


@router.post("/token/{token}/accept", response_model=InvitationRead)
async def accept_invitation_endpoint(
    token: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    invitation = await invitation_service.accept_invitation(session, token, user)
    await session.commit()
    return invitation
