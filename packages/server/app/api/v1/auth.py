"""
Authentication endpoints.

- Email/Password registration & login
- Optional organization creation or invitation acceptance at sign-up
- JWT session management (me, refresh, logout)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import jwt
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    create_jwt,
    decode_jwt,
    generate_csrf_token,
    get_current_user,
    hash_password,
    is_jwt_revoked,
    revoke_jwt,
    verify_password,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.models.invitation import Invitation
from app.models.organization import Organization
from app.models.user import User
from app.services.invitations import apply_invitation
from app.services.members import ensure_system_roles
from taskhub_shared.schemas.common import InvitationStatus, Role
from taskhub_shared.schemas.users import UserRead

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

# Cookie config
COOKIE_KWARGS = {
    "httponly": True,
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
    "max_age": settings.jwt_expire_minutes * 60,
}


def _set_session_cookies(response: Response, token: str, csrf: str) -> None:
    """Set the session JWT and CSRF cookies on a response."""
    response.set_cookie(key=SESSION_COOKIE, value=token, **COOKIE_KWARGS)
    response.set_cookie(
        key=CSRF_COOKIE,
        value=csrf,
        httponly=False,  # JS must read this
        secure=not settings.debug,
        samesite="lax",
        path="/",
        max_age=settings.jwt_expire_minutes * 60,
    )


def _issue_session(response: Response, user: User) -> str:
    token, _jti = create_jwt(user_id=user.id, org_id=user.organization_id, role=user.role)
    _set_session_cookies(response, token, generate_csrf_token())
    return token


# ---------------------------------------------------------------------------
# Email/Password Registration
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = Field(default=None, max_length=200)
    # Create a new organization and become its admin
    create_organization_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    # Join an organization through a pending invitation
    invitation_token: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    user_id: str
    email: str
    organization_id: Optional[str] = None
    role: str
    token: str
    message: str


def _auth_response(user: User, token: str, message: str) -> AuthResponse:
    return AuthResponse(
        user_id=str(user.id),
        email=user.email,
        organization_id=str(user.organization_id) if user.organization_id else None,
        role=user.role,
        token=token,
        message=message,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Register a new user with email/password."""
    email = body.email.lower()
    result = await session.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="User with this email already exists")

    if len(body.password) < 8:
        raise HTTPException(
            status_code=400, detail="Password must be at least 8 characters"
        )

    user = User(
        email=email,
        full_name=body.full_name,
        password_hash=hash_password(body.password),
        role=Role.MEMBER.value,
    )
    session.add(user)

    if body.create_organization_name:
        org = Organization(name=body.create_organization_name.strip())
        session.add(org)
        await session.flush()
        await ensure_system_roles(session, org.id)
        user.organization_id = org.id
        user.role = Role.ADMIN.value
        log.info("organization.created", org_id=str(org.id), name=org.name)
    elif body.invitation_token:
        result = await session.execute(
            select(Invitation).where(
                Invitation.token == body.invitation_token,
                Invitation.status == InvitationStatus.PENDING.value,
            )
        )
        invitation = result.scalar_one_or_none()
        if invitation and invitation.email == email:
            try:
                apply_invitation(invitation, user)
                session.add(invitation)
            except HTTPException as exc:
                # Sign-up still succeeds without the invitation
                log.info("auth.invitation_skipped", email=email, reason=exc.detail)

    await session.flush()
    token = _issue_session(response, user)

    log.info("user.registered", user_id=str(user.id), email=email)
    return _auth_response(user, token, "Registration successful")


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a JWT session."""
    email = body.email.lower()
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(body.password, user.password_hash):
        log.warning("auth.login_failure", email=email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = _issue_session(response, user)
    log.info("auth.login_success", user_id=str(user.id))
    return _auth_response(user, token, "Login successful")


# ---------------------------------------------------------------------------
# Session Management
# ---------------------------------------------------------------------------

@router.get("/me", response_model=UserRead)
async def me(user: User = Depends(get_current_user)):
    """The user behind the current session."""
    return user


@router.post("/refresh", response_model=AuthResponse)
async def refresh_session(
    request: Request,
    response: Response,
    user: User = Depends(get_current_user),
):
    """Refresh the current JWT session by issuing a new token."""
    old_token = request.cookies.get(SESSION_COOKIE)
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        old_token = authorization[7:].strip()

    token = _issue_session(response, user)
    if old_token:
        payload = decode_jwt(old_token)
        if payload.get("jti"):
            await revoke_jwt(payload["jti"], ttl_seconds=_remaining_seconds(payload))
    return _auth_response(user, token, "Session refreshed")


def _remaining_seconds(payload: dict) -> int:
    exp = payload.get("exp")
    if not exp:
        return settings.jwt_expire_minutes * 60
    remaining = int(exp - datetime.now(timezone.utc).timestamp())
    return max(remaining, 1)


@router.post("/logout")
async def logout(request: Request, response: Response):
    """Invalidate the current session."""
    token = request.cookies.get(SESSION_COOKIE)
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        token = authorization[7:].strip()

    if token:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            payload = {}  # Token already invalid, just clear cookies
        jti = payload.get("jti")
        if jti and not await is_jwt_revoked(jti):
            await revoke_jwt(jti, ttl_seconds=_remaining_seconds(payload))
            log.info("auth.logout", user_id=payload.get("sub"))

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return {"message": "Logged out"}
