"""
Appointment schemas.

An appointment always ends after it starts; the same rule is enforced by the
``appt_time_valid`` check constraint in the database. Timestamps without an
offset are taken as UTC, matching the timestamptz columns.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .common import AppointmentKind, AppointmentStatus, CursorPage


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def validate_time_range(start_at: Optional[datetime], end_at: Optional[datetime]) -> tuple[bool, str]:
    """Return (is_valid, error_message) for an appointment time range.

    A range with either bound missing is not checked here.
    """
    if start_at is None or end_at is None:
        return True, ""
    if as_utc(end_at) <= as_utc(start_at):
        return False, "end_at must be after start_at"
    return True, ""


class AppointmentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    customer_id: Optional[UUID] = None
    staff_id: Optional[UUID] = None
    kind: AppointmentKind = AppointmentKind.VISIT
    start_at: datetime
    end_at: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    note: Optional[str] = None

    @field_validator("start_at", "end_at")
    @classmethod
    def _bounds_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_range(self) -> "AppointmentCreate":
        ok, msg = validate_time_range(self.start_at, self.end_at)
        if not ok:
            raise ValueError(msg)
        return self


class AppointmentUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    customer_id: Optional[UUID] = None
    staff_id: Optional[UUID] = None
    kind: Optional[AppointmentKind] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    note: Optional[str] = None

    @field_validator("start_at", "end_at")
    @classmethod
    def _bounds_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_range(self) -> "AppointmentUpdate":
        ok, msg = validate_time_range(self.start_at, self.end_at)
        if not ok:
            raise ValueError(msg)
        return self


class AppointmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    org_id: UUID
    customer_id: Optional[UUID] = None
    staff_id: Optional[UUID] = None
    kind: str
    start_at: datetime
    end_at: datetime
    status: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None


class AppointmentListResponse(CursorPage):
    data: List[AppointmentRead]
