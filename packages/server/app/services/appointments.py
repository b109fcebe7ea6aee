"""
Appointment service: runs inside a scoped transaction.

Appointments are listed and paged by ``start_at``. A patch that moves only
one bound is checked against the stored row before it reaches the
``appt_time_valid`` constraint.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence
import uuid

import structlog
from fastapi import HTTPException
from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.claims import SessionClaims
from app.models.appointment import Appointment
from app.services.common import (
    LIKE_ESCAPE,
    PageParams,
    apply_page,
    column_values,
    contains_pattern,
    integrity_error_to_http,
)

from wedding_crm_shared.schemas.appointments import (
    AppointmentCreate,
    AppointmentUpdate,
    validate_time_range,
)
from wedding_crm_shared.schemas.common import AppointmentKind, AppointmentStatus

log = structlog.get_logger()

SEARCH_COLUMNS = (Appointment.kind, Appointment.status, Appointment.note)


@dataclass
class AppointmentFilters:
    kind: Optional[AppointmentKind] = None
    status: Optional[AppointmentStatus] = None
    start_from: Optional[datetime] = None
    start_to: Optional[datetime] = None


async def list_appointments(
    session: AsyncSession,
    claims: SessionClaims,
    page: PageParams,
    filters: AppointmentFilters,
) -> Sequence[Appointment]:
    stmt = select(Appointment).where(Appointment.org_id == claims.org_uuid())

    if filters.kind is not None:
        stmt = stmt.where(Appointment.kind == filters.kind.value)
    if filters.status is not None:
        stmt = stmt.where(Appointment.status == filters.status.value)
    if filters.start_from is not None:
        stmt = stmt.where(Appointment.start_at >= filters.start_from)
    if filters.start_to is not None:
        stmt = stmt.where(Appointment.start_at <= filters.start_to)
    if page.q and page.q.strip():
        pattern = contains_pattern(page.q)
        stmt = stmt.where(or_(*(col.ilike(pattern, escape=LIKE_ESCAPE) for col in SEARCH_COLUMNS)))

    stmt = apply_page(stmt, Appointment.start_at, page)
    result = await session.execute(stmt)
    return result.scalars().all()


async def create_appointment(
    session: AsyncSession, claims: SessionClaims, req: AppointmentCreate
) -> Appointment:
    appointment = Appointment(org_id=claims.org_uuid(), **column_values(req))
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise integrity_error_to_http(exc, "Appointment conflicts with an existing record") from exc

    log.info(
        "appointment.created",
        appointment_id=str(appointment.id),
        kind=appointment.kind,
        start_at=appointment.start_at.isoformat(),
    )
    return appointment


async def get_appointment(
    session: AsyncSession, claims: SessionClaims, appointment_id: uuid.UUID
) -> Optional[Appointment]:
    result = await session.execute(
        select(Appointment).where(
            Appointment.id == appointment_id, Appointment.org_id == claims.org_uuid()
        )
    )
    return result.scalar_one_or_none()


async def update_appointment(
    session: AsyncSession,
    claims: SessionClaims,
    appointment_id: uuid.UUID,
    req: AppointmentUpdate,
) -> Optional[Appointment]:
    values = column_values(req, exclude_unset=True)
    if not values:
        return await get_appointment(session, claims, appointment_id)

    # One bound moved: validate against the other, stored bound
    if ("start_at" in values) != ("end_at" in values):
        current = await get_appointment(session, claims, appointment_id)
        if current is None:
            return None
        ok, msg = validate_time_range(
            values.get("start_at", current.start_at),
            values.get("end_at", current.end_at),
        )
        if not ok:
            raise HTTPException(status_code=400, detail=msg)

    try:
        result = await session.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id, Appointment.org_id == claims.org_uuid())
            .values(**values)
            .returning(Appointment)
        )
    except IntegrityError as exc:
        raise integrity_error_to_http(exc, "Appointment conflicts with an existing record") from exc

    appointment = result.scalar_one_or_none()
    if appointment is not None:
        log.info("appointment.updated", appointment_id=str(appointment_id), fields=sorted(values))
    return appointment


async def delete_appointment(
    session: AsyncSession, claims: SessionClaims, appointment_id: uuid.UUID
) -> Optional[uuid.UUID]:
    result = await session.execute(
        delete(Appointment)
        .where(Appointment.id == appointment_id, Appointment.org_id == claims.org_uuid())
        .returning(Appointment.id)
    )
    deleted = result.scalar_one_or_none()
    if deleted is not None:
        log.info("appointment.deleted", appointment_id=str(appointment_id))
    return deleted
