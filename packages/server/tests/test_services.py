"""
Tests for list helpers and the SQL the services build.

Statements are captured from a mock session and compiled for PostgreSQL;
nothing is executed.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from app.services import appointments as appointment_service
from app.services import customers as customer_service
from app.services import leads as lead_service
from app.services.common import (
    MAX_LIMIT,
    PageParams,
    column_values,
    escape_like,
    next_cursor,
)

from wedding_crm_shared.schemas.common import LeadSource
from wedding_crm_shared.schemas.leads import LeadUpdate

from conftest import ORG_A, STAFF_CLAIMS


class CapturingSession:
    def __init__(self, rows=None):
        self.statements = []
        self.rows = rows or []

    async def execute(self, statement, params=None):
        self.statements.append(statement)
        result = MagicMock()
        result.scalars.return_value.all.return_value = self.rows
        result.scalar_one_or_none.return_value = None
        return result

    def compiled(self, index: int = 0):
        return self.statements[index].compile(dialect=postgresql.dialect())


class TestHelpers:
    def test_escape_like(self):
        assert escape_like("50%_off") == "50\\%\\_off"
        assert escape_like("a\\b") == "a\\\\b"
        assert escape_like("plain") == "plain"

    def test_page_direction(self):
        assert PageParams().descending
        assert not PageParams(sort="created_at.asc").descending
        assert PageParams(sort="CREATED_AT.DESC").descending

    def test_limit_is_bounded(self):
        assert PageParams(limit=10_000).bounded_limit == MAX_LIMIT
        assert PageParams(limit=0).bounded_limit == 1

    def test_next_cursor_only_for_full_pages(self):
        ts = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        rows = [SimpleNamespace(created_at=ts)] * 2
        assert next_cursor(rows, "created_at", PageParams(limit=2)) == ts.isoformat()
        assert next_cursor(rows, "created_at", PageParams(limit=3)) is None
        assert next_cursor([], "created_at", PageParams(limit=1)) is None

    def test_column_values_unwraps_enums(self):
        values = column_values(LeadUpdate(source=LeadSource.KAKAO, visited=True), exclude_unset=True)
        assert values == {"source": "kakao", "visited": True}


class TestListQueries:
    @pytest.mark.asyncio
    async def test_leads_default_query(self):
        session = CapturingSession()
        await lead_service.list_leads(session, STAFF_CLAIMS, PageParams(), lead_service.LeadFilters())

        compiled = session.compiled()
        sql = str(compiled)
        assert "leads.org_id = " in sql
        assert "ORDER BY leads.created_at DESC" in sql
        assert "LIMIT" in sql
        assert uuid.UUID(ORG_A) in compiled.params.values()

    @pytest.mark.asyncio
    async def test_leads_search_is_escaped(self):
        session = CapturingSession()
        await lead_service.list_leads(
            session, STAFF_CLAIMS, PageParams(q=" 50%_off "), lead_service.LeadFilters()
        )
        compiled = session.compiled()
        sql = str(compiled)
        assert "ILIKE" in sql
        assert "ESCAPE" in sql
        assert "%50\\%\\_off%" in compiled.params.values()

    @pytest.mark.asyncio
    async def test_leads_cursor_ascending(self):
        after = datetime(2026, 3, 1, tzinfo=timezone.utc)
        session = CapturingSession()
        await lead_service.list_leads(
            session,
            STAFF_CLAIMS,
            PageParams(sort="created_at.asc", after=after),
            lead_service.LeadFilters(visited=False),
        )
        compiled = session.compiled()
        sql = str(compiled)
        assert "leads.created_at > " in sql
        assert "leads.visited = " in sql
        assert "ORDER BY leads.created_at ASC" in sql
        assert after in compiled.params.values()

    @pytest.mark.asyncio
    async def test_customers_cursor_descending(self):
        after = datetime(2026, 3, 1, tzinfo=timezone.utc)
        session = CapturingSession()
        await customer_service.list_customers(session, STAFF_CLAIMS, PageParams(after=after))
        sql = str(session.compiled())
        assert "customers.created_at < " in sql
        assert "ORDER BY customers.created_at DESC" in sql

    @pytest.mark.asyncio
    async def test_appointments_sorted_by_start(self):
        session = CapturingSession()
        await appointment_service.list_appointments(
            session,
            STAFF_CLAIMS,
            PageParams(sort="start_at.asc"),
            appointment_service.AppointmentFilters(
                start_from=datetime(2026, 6, 1, tzinfo=timezone.utc),
                start_to=datetime(2026, 6, 30, tzinfo=timezone.utc),
            ),
        )
        sql = str(session.compiled())
        assert "appointments.start_at >= " in sql
        assert "appointments.start_at <= " in sql
        assert "ORDER BY appointments.start_at ASC" in sql


class TestSingleRowQueries:
    @pytest.mark.asyncio
    async def test_update_is_scoped_and_returns_row(self):
        session = CapturingSession()
        result = await lead_service.update_lead(
            session, STAFF_CLAIMS, uuid.uuid4(), LeadUpdate(memo="called back")
        )
        assert result is None
        sql = str(session.compiled())
        assert sql.startswith("UPDATE leads SET memo=")
        assert "leads.org_id = " in sql
        assert "RETURNING" in sql

    @pytest.mark.asyncio
    async def test_delete_is_scoped(self):
        session = CapturingSession()
        result = await customer_service.delete_customer(session, STAFF_CLAIMS, uuid.uuid4())
        assert result is None
        sql = str(session.compiled())
        assert sql.startswith("DELETE FROM customers")
        assert "customers.org_id = " in sql
        assert "RETURNING customers.id" in sql
