"""
Authentication and Authorization for Taskhub.

Supports:
- Email/Password login with bcrypt hashes
- JWT sessions (cookie or Bearer header) with Redis revocation list
- Permission-based authorization dependencies resolved from built-in or
  custom roles
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.redis import get_redis, revoked_key
from app.models.organization import Organization
from app.models.role import Role
from app.models.user import User
from taskhub_shared.permissions import permissions_for
from taskhub_shared.schemas.common import Role as RoleName

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "th_session"
CSRF_COOKIE = "th_csrf"

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    org_id: Optional[uuid.UUID],
    role: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "org": str(org_id) if org_id else None,
        "role": role,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# JWT Revocation (Redis)
# ---------------------------------------------------------------------------

async def revoke_jwt(jti: str, ttl_seconds: int = 3600) -> None:
    """Add a JWT ID to the revocation list in Redis."""
    redis = await get_redis()
    await redis.setex(revoked_key(jti), ttl_seconds, "1")


async def is_jwt_revoked(jti: str) -> bool:
    """Check if a JWT ID has been revoked."""
    redis = await get_redis()
    return await redis.exists(revoked_key(jti)) > 0


# ---------------------------------------------------------------------------
# CSRF Token
# ---------------------------------------------------------------------------

def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for an authenticated user + their org context."""

    def __init__(self, user: User, org: Organization, custom_role: Optional[Role] = None):
        self.user = user
        self.org = org
        self.custom_role = custom_role
        self.user_id = user.id
        self.org_id = org.id
        self.role = user.role
        self.permissions = permissions_for(custom_role if custom_role else user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    @property
    def is_viewer(self) -> bool:
        return self.custom_role is None and self.role == RoleName.VIEWER.value

    def can(self, action: str) -> bool:
        return action in self.permissions


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip()
    return request.cookies.get(SESSION_COOKIE)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the user behind a session cookie or Bearer token."""
    token = _extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        raise HTTPException(status_code=401, detail="Session has been revoked")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    request.state.user = user
    return user


async def get_authenticated_user(
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Main authentication dependency for organization-scoped routes."""
    if not user.organization_id:
        raise HTTPException(status_code=403, detail="You are not a member of an organization")

    org = await session.get(Organization, user.organization_id)
    if not org:
        raise HTTPException(status_code=403, detail="You are not a member of an organization")

    custom_role = None
    if user.role_id:
        custom_role = await session.get(Role, user.role_id)
        if custom_role and custom_role.organization_id != org.id:
            custom_role = None

    auth = AuthenticatedUser(user=user, org=org, custom_role=custom_role)
    request.state.auth = auth
    return auth


# ---------------------------------------------------------------------------
# Authorization dependencies (permission checks)
# ---------------------------------------------------------------------------

async def require_member(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Any org member can access this endpoint."""
    return auth


async def require_admin(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Requires the built-in admin role."""
    if not auth.is_admin:
        raise HTTPException(status_code=403, detail="Administrator access required")
    return auth


def require_permission(action: str):
    """Build a dependency that requires ``action`` in the caller's role."""

    async def _check(
        auth: AuthenticatedUser = Depends(get_authenticated_user),
    ) -> AuthenticatedUser:
        if not auth.can(action):
            log.info("auth.permission_denied", user_id=str(auth.user_id), action=action)
            raise HTTPException(status_code=403, detail=f"Permission denied: {action}")
        return auth

    return _check
