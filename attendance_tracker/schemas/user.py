"""Pydantic schemas for registration, tokens and the user directory."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from attendance_tracker.models.user import Role

_VALID_ROLES = {r.value for r in Role}


class UserCreate(BaseModel):
    name: str
    email: str
    password: str
    employee_id: str | None = None
    department: str | None = None
    role: str = Role.EMPLOYEE.value

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be empty")
        if len(v) > 200:
            raise ValueError("Name must not exceed 200 characters")
        return v

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        if len(v.encode()) > 72:
            raise ValueError("Password must not exceed 72 bytes")
        return v

    @field_validator("employee_id", "department")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip() or None

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str) -> str:
        if v not in _VALID_ROLES:
            raise ValueError(f"Role must be one of: {sorted(_VALID_ROLES)}")
        return v


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    employee_id: str | None
    department: str | None
    role: str
    is_active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


# ── Tokens ─────────────────────────────────────────────────────────
class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class LogoutResponse(BaseModel):
    message: str
