"""Appointment model (visit / phone / check)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, OrgScopedMixin, UUIDMixin


class Appointment(UUIDMixin, OrgScopedMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        sa.CheckConstraint("end_at > start_at", name="appt_time_valid"),
    )

    customer_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="customers.id", ondelete="CASCADE", index=True
    )
    staff_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="users.id", ondelete="SET NULL", index=True
    )
    kind: str = Field(default="visit", nullable=False, sa_column_kwargs={"server_default": "visit"})
    start_at: datetime = Field(nullable=False, index=True, sa_type=sa.DateTime(timezone=True))
    end_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    status: Optional[str] = Field(default="scheduled", sa_column_kwargs={"server_default": "scheduled"})
    note: Optional[str] = None
