"""
Attendance Tracker — application entry point.

This is the **only** file that assembles the app. All business logic
lives in the `services/`, `api/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import select

from attendance_tracker.api.v1.api import api_router
from attendance_tracker.api.v1.endpoints.auth import limiter
from attendance_tracker.core.config import settings
from attendance_tracker.core.exceptions import register_exception_handlers
from attendance_tracker.core.security import get_password_hash
from attendance_tracker.db.base import Base
from attendance_tracker.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from attendance_tracker.models.attendance import AttendanceRecord  # noqa: F401
from attendance_tracker.models.attendance_settings import AttendanceSettings  # noqa: F401
from attendance_tracker.models.user import Role, User

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    # Seed the first manager account on first run
    async with async_session_factory() as session:
        result = await session.execute(
            select(User).where(User.email == settings.FIRST_MANAGER_EMAIL)
        )
        if result.scalar_one_or_none() is None:
            session.add(
                User(
                    name="Default Manager",
                    email=settings.FIRST_MANAGER_EMAIL,
                    hashed_password=get_password_hash(settings.FIRST_MANAGER_PASSWORD),
                    role=Role.MANAGER.value,
                )
            )
            await session.commit()
            logger.info(
                "Default manager created: %s (password: <redacted>)",
                settings.FIRST_MANAGER_EMAIL,
            )

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Employee check-in / check-out and attendance reports",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting on login / refresh
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Domain errors + global handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
