"""
Appointment endpoints.

Lists are ordered and paged by ``start_at`` (``sort=start_at.asc`` for the
upcoming schedule). ``from``/``to`` bound the start time.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth import get_claims
from app.core.claims import SessionClaims
from app.core.scope import with_scope
from app.services import appointments as appointment_service
from app.services.common import DEFAULT_LIMIT, PageParams, next_cursor
from wedding_crm_shared.schemas.appointments import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentRead,
    AppointmentUpdate,
)
from wedding_crm_shared.schemas.common import AppointmentKind, AppointmentStatus

router = APIRouter()


def _appointment_or_404(appointment):
    if appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


@router.get("/", response_model=AppointmentListResponse)
async def list_appointments(
    q: Optional[str] = None,
    kind: Optional[AppointmentKind] = None,
    status: Optional[AppointmentStatus] = None,
    start_from: Optional[datetime] = Query(None, alias="from"),
    start_to: Optional[datetime] = Query(None, alias="to"),
    sort: str = "start_at.desc",
    after: Optional[datetime] = None,
    limit: int = Query(DEFAULT_LIMIT, ge=1),
    claims: SessionClaims = Depends(get_claims),
):
    page = PageParams(q=q, sort=sort, after=after, limit=limit)
    filters = appointment_service.AppointmentFilters(
        kind=kind, status=status, start_from=start_from, start_to=start_to
    )
    rows = await with_scope(
        claims,
        lambda session: appointment_service.list_appointments(session, claims, page, filters),
    )
    return AppointmentListResponse(
        data=[AppointmentRead.model_validate(r) for r in rows],
        next_cursor=next_cursor(rows, "start_at", page),
    )


@router.post("/", response_model=AppointmentRead, status_code=201)
async def create_appointment(
    appointment_in: AppointmentCreate,
    claims: SessionClaims = Depends(get_claims),
):
    appointment = await with_scope(
        claims,
        lambda session: appointment_service.create_appointment(session, claims, appointment_in),
    )
    return AppointmentRead.model_validate(appointment)


@router.get("/{appointment_id}", response_model=AppointmentRead)
async def get_appointment(
    appointment_id: uuid.UUID,
    claims: SessionClaims = Depends(get_claims),
):
    appointment = await with_scope(
        claims,
        lambda session: appointment_service.get_appointment(session, claims, appointment_id),
    )
    return AppointmentRead.model_validate(_appointment_or_404(appointment))


@router.patch("/{appointment_id}", response_model=AppointmentRead)
async def update_appointment(
    appointment_id: uuid.UUID,
    appointment_in: AppointmentUpdate,
    claims: SessionClaims = Depends(get_claims),
):
    appointment = await with_scope(
        claims,
        lambda session: appointment_service.update_appointment(
            session, claims, appointment_id, appointment_in
        ),
    )
    return AppointmentRead.model_validate(_appointment_or_404(appointment))


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: uuid.UUID,
    claims: SessionClaims = Depends(get_claims),
):
    deleted = await with_scope(
        claims,
        lambda session: appointment_service.delete_appointment(session, claims, appointment_id),
    )
    _appointment_or_404(deleted)
    return {"ok": True, "id": str(deleted)}
