"""Customer endpoints. Updates and deletes require a manager role."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth import get_claims, require_manager
from app.core.claims import SessionClaims
from app.core.scope import with_scope
from app.services import customers as customer_service
from app.services.common import DEFAULT_LIMIT, PageParams, next_cursor
from wedding_crm_shared.schemas.customers import (
    CustomerCreate,
    CustomerListResponse,
    CustomerRead,
    CustomerUpdate,
)

router = APIRouter()


def _customer_or_404(customer):
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.get("/", response_model=CustomerListResponse)
async def list_customers(
    q: Optional[str] = None,
    sort: str = "created_at.desc",
    after: Optional[datetime] = None,
    limit: int = Query(DEFAULT_LIMIT, ge=1),
    claims: SessionClaims = Depends(get_claims),
):
    page = PageParams(q=q, sort=sort, after=after, limit=limit)
    rows = await with_scope(
        claims, lambda session: customer_service.list_customers(session, claims, page)
    )
    return CustomerListResponse(
        data=[CustomerRead.model_validate(r) for r in rows],
        next_cursor=next_cursor(rows, "created_at", page),
    )


@router.post("/", response_model=CustomerRead, status_code=201)
async def create_customer(
    customer_in: CustomerCreate,
    claims: SessionClaims = Depends(get_claims),
):
    customer = await with_scope(
        claims, lambda session: customer_service.create_customer(session, claims, customer_in)
    )
    return CustomerRead.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerRead)
async def get_customer(
    customer_id: uuid.UUID,
    claims: SessionClaims = Depends(get_claims),
):
    customer = await with_scope(
        claims, lambda session: customer_service.get_customer(session, claims, customer_id)
    )
    return CustomerRead.model_validate(_customer_or_404(customer))


@router.patch("/{customer_id}", response_model=CustomerRead)
async def update_customer(
    customer_id: uuid.UUID,
    customer_in: CustomerUpdate,
    claims: SessionClaims = Depends(require_manager),
):
    if not customer_in.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")

    customer = await with_scope(
        claims,
        lambda session: customer_service.update_customer(session, claims, customer_id, customer_in),
    )
    return CustomerRead.model_validate(_customer_or_404(customer))


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: uuid.UUID,
    claims: SessionClaims = Depends(require_manager),
):
    deleted = await with_scope(
        claims, lambda session: customer_service.delete_customer(session, claims, customer_id)
    )
    _customer_or_404(deleted)
    return {"ok": True, "id": str(deleted)}
