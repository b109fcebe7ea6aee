"""
Lead service: list, create, read, update and delete leads.

Every function runs inside a scoped transaction (app.core.scope). The
explicit ``org_id`` filters sit alongside the row policies; a row the
policies hide reads as absent, so single-row functions return None and the
handler answers 404.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence
import uuid

import structlog
from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.claims import SessionClaims
from app.models.lead import Lead
from app.services.common import (
    LIKE_ESCAPE,
    PageParams,
    apply_page,
    column_values,
    contains_pattern,
    integrity_error_to_http,
)

from wedding_crm_shared.schemas.common import LeadSource
from wedding_crm_shared.schemas.leads import LeadCreate, LeadUpdate

log = structlog.get_logger()

DUPLICATE_PHONE = "A lead with this phone number already exists"

SEARCH_COLUMNS = (
    Lead.bride_name,
    Lead.groom_name,
    Lead.bride_phone,
    Lead.groom_phone,
    Lead.bride_email,
    Lead.groom_email,
    Lead.expected_venue,
    Lead.memo,
    Lead.source,
)


@dataclass
class LeadFilters:
    source: Optional[LeadSource] = None
    visited: Optional[bool] = None
    consent: Optional[bool] = None


async def list_leads(
    session: AsyncSession,
    claims: SessionClaims,
    page: PageParams,
    filters: LeadFilters,
) -> Sequence[Lead]:
    stmt = select(Lead).where(Lead.org_id == claims.org_uuid())

    if filters.source is not None:
        stmt = stmt.where(Lead.source == filters.source.value)
    if filters.visited is not None:
        stmt = stmt.where(Lead.visited == filters.visited)
    if filters.consent is not None:
        stmt = stmt.where(Lead.consent == filters.consent)
    if page.q and page.q.strip():
        pattern = contains_pattern(page.q)
        stmt = stmt.where(or_(*(col.ilike(pattern, escape=LIKE_ESCAPE) for col in SEARCH_COLUMNS)))

    stmt = apply_page(stmt, Lead.created_at, page)
    result = await session.execute(stmt)
    return result.scalars().all()


async def create_lead(session: AsyncSession, claims: SessionClaims, req: LeadCreate) -> Lead:
    lead = Lead(org_id=claims.org_uuid(), **column_values(req))
    session.add(lead)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise integrity_error_to_http(exc, DUPLICATE_PHONE) from exc

    log.info("lead.created", lead_id=str(lead.id), source=lead.source)
    return lead


async def get_lead(
    session: AsyncSession, claims: SessionClaims, lead_id: uuid.UUID
) -> Optional[Lead]:
    result = await session.execute(
        select(Lead).where(Lead.id == lead_id, Lead.org_id == claims.org_uuid())
    )
    return result.scalar_one_or_none()


async def update_lead(
    session: AsyncSession,
    claims: SessionClaims,
    lead_id: uuid.UUID,
    req: LeadUpdate,
) -> Optional[Lead]:
    """Apply a partial update; None when no visible, writable row matched."""
    values = column_values(req, exclude_unset=True)
    if not values:
        return await get_lead(session, claims, lead_id)

    stmt = (
        update(Lead)
        .where(Lead.id == lead_id, Lead.org_id == claims.org_uuid())
        .values(**values)
        .returning(Lead)
    )
    try:
        result = await session.execute(stmt)
    except IntegrityError as exc:
        raise integrity_error_to_http(exc, DUPLICATE_PHONE) from exc

    lead = result.scalar_one_or_none()
    if lead is not None:
        log.info("lead.updated", lead_id=str(lead_id), fields=sorted(values))
    return lead


async def delete_lead(
    session: AsyncSession, claims: SessionClaims, lead_id: uuid.UUID
) -> Optional[uuid.UUID]:
    result = await session.execute(
        delete(Lead)
        .where(Lead.id == lead_id, Lead.org_id == claims.org_uuid())
        .returning(Lead.id)
    )
    deleted = result.scalar_one_or_none()
    if deleted is not None:
        log.info("lead.deleted", lead_id=str(lead_id))
    return deleted
