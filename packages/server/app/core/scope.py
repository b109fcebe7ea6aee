"""
Scoped transactions: the only way tenant data is read or written.

A scoped transaction borrows a pooled connection, begins a transaction and
writes the request's claims into a transaction-local setting
(``set_config(key, value, true)``) before the caller's operation runs. Row
policies read that setting, so the org boundary is enforced by the database
even if handler code forgets a filter. The setting dies with the
transaction: a connection returned to the pool carries no tenant state.

Usage:
    rows = await with_scope(claims, lambda session: lead_service.list_leads(session, claims, filters))

    async with scoped_session(claims) as session:
        ...
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Optional, TypeVar

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.claims import SessionClaims
from app.core.config import get_settings
from app.core.database import async_session_factory

log = structlog.get_logger()

T = TypeVar("T")

SET_CLAIMS_SQL = text("select set_config(:key, :claims, true)")
SET_ROLE_SQL = text("select set_config('role', :role, true)")


@asynccontextmanager
async def scoped_session(
    claims: SessionClaims,
    session_factory: Optional[Callable[[], AsyncSession]] = None,
) -> AsyncIterator[AsyncSession]:
    """Yield a session inside a transaction carrying ``claims``.

    Commits when the block exits normally. On any exception (including a
    failing set_config, or cancellation) the transaction is rolled back and
    the original exception propagates. The session is closed on every path.
    Claims whose org_id is not a UUID are refused before a session is borrowed.
    """
    claims.org_uuid()
    settings = get_settings()
    factory = session_factory or async_session_factory

    async with factory() as session:
        try:
            async with session.begin():
                await session.execute(
                    SET_CLAIMS_SQL,
                    {"key": settings.claims_setting_key, "claims": claims.to_json()},
                )
                if settings.database_rls_role:
                    await session.execute(SET_ROLE_SQL, {"role": settings.database_rls_role})
                yield session
        except Exception as exc:
            log.warning(
                "scope.rolled_back",
                org_id=claims.org_id,
                subject_id=claims.subject_id,
                error=type(exc).__name__,
            )
            raise


async def with_scope(
    claims: SessionClaims,
    operation: Callable[[AsyncSession], Awaitable[T]],
    *,
    session_factory: Optional[Callable[[], AsyncSession]] = None,
) -> T:
    """Run ``operation`` inside a scoped transaction and return its result."""
    async with scoped_session(claims, session_factory=session_factory) as session:
        return await operation(session)
