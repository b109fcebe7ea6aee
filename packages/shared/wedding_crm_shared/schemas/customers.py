from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .common import CursorPage


class CustomerCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: Optional[str] = None
    addr1: Optional[str] = None
    addr2: Optional[str] = None
    memo: Optional[str] = None


class CustomerUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    addr1: Optional[str] = None
    addr2: Optional[str] = None
    memo: Optional[str] = None


class CustomerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    org_id: UUID
    name: str
    phone: str
    email: Optional[str] = None
    addr1: Optional[str] = None
    addr2: Optional[str] = None
    memo: Optional[str] = None
    created_at: Optional[datetime] = None


class CustomerListResponse(CursorPage):
    data: List[CustomerRead]
