"""
Organization API endpoints.

GET    /api/v1/orgs   : Public list of orgs (id, name), used at signup
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import organizations as org_service
from wedding_crm_shared.schemas.organizations import OrgListItem, OrgListResponse

router = APIRouter()


@router.get("/orgs", response_model=OrgListResponse, tags=["Organizations"])
async def list_orgs(session: AsyncSession = Depends(get_session)):
    """List all orgs, ordered by name. No authentication required."""
    orgs = await org_service.list_orgs(session)
    return OrgListResponse(data=[OrgListItem.model_validate(o) for o in orgs])
