"""
Organization and identity schemas shared between server and clients.

Organizations are created out-of-band (admin action or a signup flow owned
by the identity provider); the API only exposes the public list used to pick
an org at signup, and the caller's own session claims.
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel


class OrgListItem(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class OrgListResponse(BaseModel):
    data: list[OrgListItem]


class ClaimsResponse(BaseModel):
    """The claims the current request runs under."""

    subject_id: str
    role: str
    org_id: str
