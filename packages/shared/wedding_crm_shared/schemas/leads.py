from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .common import CursorPage, LeadSource


class LeadBase(BaseModel):
    bride_phone: Optional[str] = None
    groom_phone: Optional[str] = None
    bride_email: Optional[str] = None
    groom_email: Optional[str] = None
    addr1: Optional[str] = None
    addr2: Optional[str] = None
    # e.g. ["venue", "photo", "dress", "hair", "makeup", "honeymoon"]
    interests: Optional[List[str]] = None
    wedding_planned_on: Optional[date] = None
    expected_venue: Optional[str] = None
    memo: Optional[str] = None
    consent_at: Optional[datetime] = None
    customer_id: Optional[UUID] = None


class LeadCreate(LeadBase):
    model_config = ConfigDict(extra="forbid")

    bride_name: str = Field(min_length=1)
    groom_name: str = Field(min_length=1)
    source: LeadSource = LeadSource.ETC
    visited: bool = False
    consent: bool = False


class LeadUpdate(LeadBase):
    model_config = ConfigDict(extra="forbid")

    bride_name: Optional[str] = Field(default=None, min_length=1)
    groom_name: Optional[str] = Field(default=None, min_length=1)
    source: Optional[LeadSource] = None
    visited: Optional[bool] = None
    consent: Optional[bool] = None


class LeadRead(LeadBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    org_id: UUID
    bride_name: str
    groom_name: str
    source: str
    visited: bool
    consent: bool
    created_at: Optional[datetime] = None


class LeadListResponse(CursorPage):
    data: List[LeadRead]
