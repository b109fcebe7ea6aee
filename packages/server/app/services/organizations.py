"""
Organization service.

Orgs are created out-of-band. The only read exposed here is the public list
used to pick an org at signup; the ``orgs_read`` policy allows it without
claims.
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.organization import Organization


async def list_orgs(session: AsyncSession) -> Sequence[Organization]:
    """All orgs (id, name), ordered by name."""
    result = await session.execute(select(Organization).order_by(Organization.name))
    return result.scalars().all()
