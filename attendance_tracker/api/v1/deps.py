"""
FastAPI dependencies — database session, clock, session context and
role guards.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.core.config import settings
from attendance_tracker.core.security import decode_access_token
from attendance_tracker.db.session import async_session_factory
from attendance_tracker.models.user import Role, User
from attendance_tracker.services.attendance_service import load_rules
from attendance_tracker.services.status_engine import AttendanceRules

# auto_error=False so we can fall back to the HttpOnly cookie
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/auth/login", auto_error=False
)


@dataclass(frozen=True)
class SessionContext:
    """Who is calling: resolved once per request from the token."""

    user: User
    role: Role

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_manager(self) -> bool:
        return self.role is Role.MANAGER


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Clock & rules ───────────────────────────────────────────────────
def get_now() -> datetime:
    """Current instant (UTC). Overridden in tests to pin the clock."""
    return datetime.now(timezone.utc)


async def get_rules(db: AsyncSession = Depends(get_db)) -> AttendanceRules:
    return await load_rules(db)


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode JWT from Header OR Cookie, look up user."""
    # Priority: Header > Cookie ("Bearer <token>" or bare token)
    final_token = token
    if not final_token and access_token:
        final_token = access_token.removeprefix("Bearer ").strip()

    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not final_token:
        raise credentials_exc

    payload = decode_access_token(final_token)
    if payload is None:
        raise credentials_exc

    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise credentials_exc

    result = await db.execute(select(User).where(User.id == int(user_id)))
    user = result.scalar_one_or_none()
    if user is None:
        raise credentials_exc
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Reject inactive accounts."""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user account")
    return current_user


async def get_session_context(
    current_user: User = Depends(get_current_active_user),
) -> SessionContext:
    return SessionContext(user=current_user, role=Role(current_user.role))


async def require_manager(
    ctx: SessionContext = Depends(get_session_context),
) -> SessionContext:
    """Only allow the manager role to proceed."""
    if not ctx.is_manager:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Manager privileges required",
        )
    return ctx
