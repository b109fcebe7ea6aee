"""Caller identity endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.auth import get_claims
from app.core.claims import SessionClaims
from wedding_crm_shared.schemas.organizations import ClaimsResponse

router = APIRouter()


@router.get("/me", response_model=ClaimsResponse, tags=["Auth"])
async def me(claims: SessionClaims = Depends(get_claims)):
    """The claims this request runs under (subject, role, org)."""
    return ClaimsResponse(subject_id=claims.subject_id, role=claims.role, org_id=claims.org_id)
