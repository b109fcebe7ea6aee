"""
Lead endpoints: list/search, create, read, update, delete.

All data access goes through a scoped transaction carrying the caller's
claims. Updates and deletes additionally require a manager role, matching
the row policies on ``leads``.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth import get_claims, require_manager
from app.core.claims import SessionClaims
from app.core.scope import with_scope
from app.services import leads as lead_service
from app.services.common import DEFAULT_LIMIT, PageParams, next_cursor
from wedding_crm_shared.schemas.common import LeadSource
from wedding_crm_shared.schemas.leads import (
    LeadCreate,
    LeadListResponse,
    LeadRead,
    LeadUpdate,
)

router = APIRouter()


def _lead_or_404(lead):
    if lead is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


@router.get("/", response_model=LeadListResponse)
async def list_leads(
    q: Optional[str] = None,
    source: Optional[LeadSource] = None,
    visited: Optional[bool] = None,
    consent: Optional[bool] = None,
    sort: str = "created_at.desc",
    after: Optional[datetime] = None,
    limit: int = Query(DEFAULT_LIMIT, ge=1),
    claims: SessionClaims = Depends(get_claims),
):
    """List the org's leads, newest first by default."""
    page = PageParams(q=q, sort=sort, after=after, limit=limit)
    filters = lead_service.LeadFilters(source=source, visited=visited, consent=consent)
    rows = await with_scope(
        claims, lambda session: lead_service.list_leads(session, claims, page, filters)
    )
    return LeadListResponse(
        data=[LeadRead.model_validate(r) for r in rows],
        next_cursor=next_cursor(rows, "created_at", page),
    )


@router.post("/", response_model=LeadRead, status_code=201)
async def create_lead(
    lead_in: LeadCreate,
    claims: SessionClaims = Depends(get_claims),
):
    lead = await with_scope(
        claims, lambda session: lead_service.create_lead(session, claims, lead_in)
    )
    return LeadRead.model_validate(lead)


@router.get("/{lead_id}", response_model=LeadRead)
async def get_lead(
    lead_id: uuid.UUID,
    claims: SessionClaims = Depends(get_claims),
):
    lead = await with_scope(
        claims, lambda session: lead_service.get_lead(session, claims, lead_id)
    )
    return LeadRead.model_validate(_lead_or_404(lead))


@router.patch("/{lead_id}", response_model=LeadRead)
async def update_lead(
    lead_id: uuid.UUID,
    lead_in: LeadUpdate,
    claims: SessionClaims = Depends(require_manager),
):
    lead = await with_scope(
        claims, lambda session: lead_service.update_lead(session, claims, lead_id, lead_in)
    )
    return LeadRead.model_validate(_lead_or_404(lead))


@router.delete("/{lead_id}")
async def delete_lead(
    lead_id: uuid.UUID,
    claims: SessionClaims = Depends(require_manager),
):
    deleted = await with_scope(
        claims, lambda session: lead_service.delete_lead(session, claims, lead_id)
    )
    _lead_or_404(deleted)
    return {"ok": True, "id": str(deleted)}
