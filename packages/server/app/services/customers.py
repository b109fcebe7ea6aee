"""Customer service: runs inside a scoped transaction."""

from __future__ import annotations

from typing import Optional, Sequence
import uuid

import structlog
from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.claims import SessionClaims
from app.models.customer import Customer
from app.services.common import (
    LIKE_ESCAPE,
    PageParams,
    apply_page,
    column_values,
    contains_pattern,
    integrity_error_to_http,
)

from wedding_crm_shared.schemas.customers import CustomerCreate, CustomerUpdate

log = structlog.get_logger()

DUPLICATE_PHONE = "A customer with this phone number already exists"

SEARCH_COLUMNS = (
    Customer.name,
    Customer.phone,
    Customer.email,
    Customer.addr1,
    Customer.addr2,
)


async def list_customers(
    session: AsyncSession, claims: SessionClaims, page: PageParams
) -> Sequence[Customer]:
    stmt = select(Customer).where(Customer.org_id == claims.org_uuid())
    if page.q and page.q.strip():
        pattern = contains_pattern(page.q)
        stmt = stmt.where(or_(*(col.ilike(pattern, escape=LIKE_ESCAPE) for col in SEARCH_COLUMNS)))

    stmt = apply_page(stmt, Customer.created_at, page)
    result = await session.execute(stmt)
    return result.scalars().all()


async def create_customer(
    session: AsyncSession, claims: SessionClaims, req: CustomerCreate
) -> Customer:
    customer = Customer(org_id=claims.org_uuid(), **column_values(req))
    session.add(customer)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise integrity_error_to_http(exc, DUPLICATE_PHONE) from exc

    log.info("customer.created", customer_id=str(customer.id))
    return customer


async def get_customer(
    session: AsyncSession, claims: SessionClaims, customer_id: uuid.UUID
) -> Optional[Customer]:
    result = await session.execute(
        select(Customer).where(
            Customer.id == customer_id, Customer.org_id == claims.org_uuid()
        )
    )
    return result.scalar_one_or_none()


async def update_customer(
    session: AsyncSession,
    claims: SessionClaims,
    customer_id: uuid.UUID,
    req: CustomerUpdate,
) -> Optional[Customer]:
    """Apply a partial update. The handler rejects empty patches beforehand."""
    values = column_values(req, exclude_unset=True)
    try:
        result = await session.execute(
            update(Customer)
            .where(Customer.id == customer_id, Customer.org_id == claims.org_uuid())
            .values(**values)
            .returning(Customer)
        )
    except IntegrityError as exc:
        raise integrity_error_to_http(exc, DUPLICATE_PHONE) from exc

    customer = result.scalar_one_or_none()
    if customer is not None:
        log.info("customer.updated", customer_id=str(customer_id), fields=sorted(values))
    return customer


async def delete_customer(
    session: AsyncSession, claims: SessionClaims, customer_id: uuid.UUID
) -> Optional[uuid.UUID]:
    result = await session.execute(
        delete(Customer)
        .where(Customer.id == customer_id, Customer.org_id == claims.org_uuid())
        .returning(Customer.id)
    )
    deleted = result.scalar_one_or_none()
    if deleted is not None:
        log.info("customer.deleted", customer_id=str(customer_id))
    return deleted
