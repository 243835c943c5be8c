"""
Auth endpoints — registration, login (OAuth2 password flow), token refresh
and the user directory.
"""

from fastapi import (APIRouter, Cookie, Depends, HTTPException, Query, Request,
                     Response, status)
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.api.v1.deps import (SessionContext, get_db,
                                            get_session_context,
                                            require_manager)
from attendance_tracker.core.config import settings
from attendance_tracker.core.security import (create_access_token,
                                              create_refresh_token,
                                              decode_refresh_token,
                                              get_password_hash,
                                              verify_password)
from attendance_tracker.models.user import Role, User
from attendance_tracker.schemas.user import (LogoutResponse, RefreshRequest,
                                             Token, UserCreate, UserRead)

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(response: Response, user: User) -> Token:
    """Mint an access/refresh pair and mirror it into HttpOnly cookies."""
    access_token = create_access_token(user.id, role=user.role)
    refresh_token = create_refresh_token(user.id)

    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    response.set_cookie(
        key="refresh_token",
        value=refresh_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )
    return Token(access_token=access_token, refresh_token=refresh_token)


async def _create_user(db: AsyncSession, body: UserCreate) -> User:
    """Insert a user. Email and employee id must be unique."""
    clauses = [User.email == body.email]
    if body.employee_id:
        clauses.append(User.employee_id == body.employee_id)
    existing = await db.execute(select(User).where(or_(*clauses)))
    if existing.scalars().first() is not None:
        raise HTTPException(status_code=400, detail="Email or employee ID already registered")

    user = User(
        name=body.name,
        email=body.email,
        hashed_password=get_password_hash(body.password),
        employee_id=body.employee_id,
        department=body.department,
        role=body.role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@router.post("/register", response_model=UserRead, status_code=201)
async def register(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Self-service sign-up. Only employee accounts can be created here."""
    if body.role != Role.EMPLOYEE.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only managers can create manager accounts",
        )
    return await _create_user(db, body)


@router.post("/login", response_model=Token)
@limiter.limit("5/minute")
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Authenticate with email/password. Returns tokens and sets HttpOnly cookies."""
    result = await db.execute(
        select(User).where(User.email == form_data.username.lower().strip())
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return _issue_tokens(response, user)


@router.post("/refresh", response_model=Token)
@limiter.limit("10/minute")
async def refresh_access_token_endpoint(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    refresh_token_cookie: str | None = Cookie(None, alias="refresh_token"),
    db: AsyncSession = Depends(get_db),
) -> Token:
    # Priority: Body > Cookie
    token_str = body.refresh_token if body and body.refresh_token else refresh_token_cookie
    if not token_str:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token missing",
        )

    payload = decode_refresh_token(token_str)
    if payload is None or not str(payload.get("sub", "")).isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    result = await db.execute(select(User).where(User.id == int(payload["sub"])))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return _issue_tokens(response, user)


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response) -> LogoutResponse:
    """Clear auth cookies and end the session."""
    response.delete_cookie("access_token")
    response.delete_cookie("refresh_token")
    return LogoutResponse(message="Logged out")


@router.get("/me", response_model=UserRead)
async def read_current_user(
    ctx: SessionContext = Depends(get_session_context),
) -> User:
    """Return profile of the currently authenticated user."""
    return ctx.user


# ── Directory (manager-only) ───────────────────────────────────────
@router.post("/users", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    _manager: SessionContext = Depends(require_manager),
) -> User:
    """Create an account with any role (manager only)."""
    return await _create_user(db, body)


@router.get("/users", response_model=list[UserRead])
async def list_users(
    role: Role | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    _manager: SessionContext = Depends(require_manager),
) -> list[User]:
    """Active users ordered by name, optionally filtered by role."""
    query = select(User).where(User.is_active.is_(True)).order_by(User.name)
    if role is not None:
        query = query.where(User.role == role.value)
    result = await db.execute(query)
    return list(result.scalars().all())
