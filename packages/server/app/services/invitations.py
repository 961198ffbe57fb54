"""
Invitation service: create, look up, accept and cancel org invitations.

Tokens are 32 random bytes, hex encoded, and expire after seven days.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.invitation import Invitation
from app.models.organization import Organization
from app.models.user import User
from app.services.projects import as_utc
from taskhub_shared.schemas.common import InvitationStatus
from taskhub_shared.schemas.invitations import InvitationCreate, InvitationPublic

log = structlog.get_logger()

INVITATION_TTL = timedelta(days=7)


def generate_invitation_token() -> str:
    return secrets.token_hex(32)


def is_expired(invitation: Invitation, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return now > as_utc(invitation.expires_at)


async def create_invitation(
    session: AsyncSession,
    invitation_in: InvitationCreate,
    auth: AuthenticatedUser,
) -> Invitation:
    email = invitation_in.email.lower()

    result = await session.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="User already exists")

    result = await session.execute(
        select(Invitation).where(
            Invitation.email == email,
            Invitation.organization_id == auth.org_id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
    )
    if result.scalars().first():
        raise HTTPException(status_code=409, detail="Invitation already sent to this email")

    invitation = Invitation(
        organization_id=auth.org_id,
        email=email,
        role=invitation_in.role.value,
        token=generate_invitation_token(),
        status=InvitationStatus.PENDING.value,
        invited_by_id=auth.user_id,
        expires_at=datetime.now(timezone.utc) + INVITATION_TTL,
    )
    session.add(invitation)
    await session.flush()

    log.info(
        "invitation.created",
        invitation_id=str(invitation.id),
        org_id=str(auth.org_id),
        role=invitation.role,
    )
    return invitation


async def get_invitation_by_token_or_404(session: AsyncSession, token: str) -> Invitation:
    result = await session.execute(select(Invitation).where(Invitation.token == token))
    invitation = result.scalar_one_or_none()
    if not invitation:
        raise HTTPException(status_code=404, detail="Invalid invitation")
    return invitation


async def describe_invitation(session: AsyncSession, invitation: Invitation) -> InvitationPublic:
    org = await session.get(Organization, invitation.organization_id)
    inviter = await session.get(User, invitation.invited_by_id)
    return InvitationPublic(
        email=invitation.email,
        role=invitation.role,
        status=invitation.status,
        organization_name=org.name if org else "the organization",
        invited_by_name=inviter.display_name if inviter else None,
        expires_at=invitation.expires_at,
        expired=is_expired(invitation),
    )


def apply_invitation(invitation: Invitation, user: User) -> None:
    """Move ``user`` into the inviting org with the invited role."""
    if invitation.status != InvitationStatus.PENDING.value:
        raise HTTPException(status_code=409, detail="Invitation already used")
    if is_expired(invitation):
        raise HTTPException(status_code=410, detail="Invitation expired")

    user.organization_id = invitation.organization_id
    user.role = invitation.role
    user.role_id = None
    invitation.status = InvitationStatus.ACCEPTED.value
    invitation.accepted_at = datetime.now(timezone.utc)


async def accept_invitation(session: AsyncSession, token: str, user: User) -> Invitation:
    invitation = await get_invitation_by_token_or_404(session, token)
    apply_invitation(invitation, user)
    session.add(user)
    session.add(invitation)
    await session.flush()

    log.info(
        "invitation.accepted",
        invitation_id=str(invitation.id),
        user_id=str(user.id),
        org_id=str(invitation.organization_id),
    )
    return invitation


async def cancel_invitation(
    session: AsyncSession, invitation_id: uuid.UUID, org_id: uuid.UUID
) -> Invitation:
    invitation = await session.get(Invitation, invitation_id)
    if not invitation or invitation.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Invitation not found")
    if invitation.status != InvitationStatus.PENDING.value:
        raise HTTPException(status_code=409, detail="Only pending invitations can be cancelled")

    invitation.status = InvitationStatus.CANCELLED.value
    session.add(invitation)
    await session.flush()
    log.info("invitation.cancelled", invitation_id=str(invitation.id))
    return invitation
