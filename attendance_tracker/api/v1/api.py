"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from attendance_tracker.api.v1.endpoints import (attendance, auth, dashboard,
                                                 health, settings)

api_router = APIRouter()

# Registration, login, refresh, directory
api_router.include_router(auth.router)

# Check-in / check-out, history, team views, absence sweep
api_router.include_router(attendance.router)

# Employee / manager home screens, weekly trend
api_router.include_router(dashboard.router)

# Attendance rules (manager-only)
api_router.include_router(settings.router)

api_router.include_router(health.router)
