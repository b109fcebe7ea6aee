"""Lead model: a couple's first contact, before they become a customer."""

from datetime import date, datetime
from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, OrgScopedMixin, UUIDMixin


class Lead(UUIDMixin, OrgScopedMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "leads"
    __table_args__ = (
        # duplicate phones are rejected per org; NULLs are allowed
        sa.UniqueConstraint("org_id", "bride_phone", name="u_leads_org_bride_phone"),
        sa.UniqueConstraint("org_id", "groom_phone", name="u_leads_org_groom_phone"),
    )

    bride_name: str = Field(nullable=False)
    groom_name: str = Field(nullable=False)
    bride_phone: Optional[str] = None
    groom_phone: Optional[str] = None
    bride_email: Optional[str] = None
    groom_email: Optional[str] = None
    addr1: Optional[str] = None
    addr2: Optional[str] = None
    interests: Optional[List[str]] = Field(default=None, sa_type=ARRAY(sa.Text))
    wedding_planned_on: Optional[date] = None
    expected_venue: Optional[str] = None
    memo: Optional[str] = None
    source: str = Field(default="etc", nullable=False, sa_column_kwargs={"server_default": "etc"})
    visited: bool = Field(default=False, nullable=False, sa_column_kwargs={"server_default": sa.false()})
    consent: bool = Field(default=False, nullable=False, sa_column_kwargs={"server_default": sa.false()})
    consent_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True)
