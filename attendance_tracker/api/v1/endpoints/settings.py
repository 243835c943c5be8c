"""
Settings endpoints — manager-configurable attendance rules.

Singleton pattern: only one row in attendance_settings. GET retrieves it,
PUT updates it. If no row exists, one is created from the configured
defaults on first access.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.api.v1.deps import SessionContext, get_db, require_manager
from attendance_tracker.core.config import settings as app_settings
from attendance_tracker.models.attendance_settings import AttendanceSettings
from attendance_tracker.schemas.attendance import (AttendanceSettingsRead,
                                                   AttendanceSettingsUpdate)

router = APIRouter(tags=["settings"])
logger = logging.getLogger(__name__)


async def _get_or_create_settings(db: AsyncSession) -> AttendanceSettings:
    """Fetch the singleton settings row, creating it with defaults if absent."""
    result = await db.execute(select(AttendanceSettings).limit(1))
    rules = result.scalar_one_or_none()
    if rules is None:
        rules = AttendanceSettings(
            id=1,
            late_threshold=app_settings.LATE_THRESHOLD,
            half_day_hours=app_settings.HALF_DAY_HOURS,
            timezone_offset=app_settings.TIMEZONE_OFFSET,
        )
        db.add(rules)
        await db.commit()
        await db.refresh(rules)
        logger.info("Created default attendance settings")
    return rules


@router.get("/settings", response_model=AttendanceSettingsRead)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    _manager: SessionContext = Depends(require_manager),
) -> AttendanceSettings:
    """Get current attendance rules."""
    return await _get_or_create_settings(db)


@router.put("/settings", response_model=AttendanceSettingsRead)
async def update_settings(
    body: AttendanceSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    manager: SessionContext = Depends(require_manager),
) -> AttendanceSettings:
    """Update attendance rules (late cutoff, half-day hours, timezone)."""
    rules = await _get_or_create_settings(db)

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(rules, field, value)

    await db.commit()
    await db.refresh(rules)
    logger.info("Attendance settings updated by user %d: %s", manager.user_id, changes)
    return rules
