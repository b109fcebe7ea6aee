"""
Lead endpoint tests.

The scoped transaction is mocked: these tests check what handlers hand to
it (claims, operation) and how they shape the responses. Row isolation
itself is covered by test_rls_integration.py.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from app.models.lead import Lead

from conftest import (
    BAD_ORG_TOKEN,
    MANAGER_CLAIMS,
    MANAGER_TOKEN,
    NO_ORG_TOKEN,
    ORG_A,
    STAFF_CLAIMS,
    STAFF_TOKEN,
    bearer,
)

BASE = "/api/v1/leads/"


def _lead(**overrides) -> Lead:
    values = dict(
        id=uuid.uuid4(),
        org_id=uuid.UUID(ORG_A),
        bride_name="Jiyeon",
        groom_name="Minho",
        bride_phone="010-1111-2222",
        source="instagram",
        visited=False,
        consent=True,
        created_at=datetime(2026, 5, 1, 10, 0, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return Lead(**values)


class TestListLeads:
    @pytest.mark.asyncio
    async def test_list_runs_under_caller_claims(self, client: AsyncClient):
        rows = [_lead(), _lead(bride_name="Sora")]
        scope = AsyncMock(return_value=rows)
        with patch("app.api.v1.leads.with_scope", scope):
            resp = await client.get(BASE, headers=bearer(STAFF_TOKEN))

        assert resp.status_code == 200
        body = resp.json()
        assert [r["bride_name"] for r in body["data"]] == ["Jiyeon", "Sora"]
        assert body["next_cursor"] is None
        assert scope.await_args.args[0] == STAFF_CLAIMS

    @pytest.mark.asyncio
    async def test_full_page_has_cursor(self, client: AsyncClient):
        start = datetime(2026, 5, 1, tzinfo=timezone.utc)
        rows = [_lead(created_at=start - timedelta(minutes=i)) for i in range(2)]
        with patch("app.api.v1.leads.with_scope", AsyncMock(return_value=rows)):
            resp = await client.get(BASE, params={"limit": 2}, headers=bearer(STAFF_TOKEN))

        assert resp.status_code == 200
        assert resp.json()["next_cursor"] == rows[-1].created_at.isoformat()

    @pytest.mark.asyncio
    async def test_filters_reach_the_service(self, client: AsyncClient):
        scope = AsyncMock(return_value=[])
        with patch("app.api.v1.leads.with_scope", scope):
            resp = await client.get(
                BASE,
                params={"q": "50%_off", "source": "kakao", "visited": "true", "limit": 500},
                headers=bearer(STAFF_TOKEN),
            )
        assert resp.status_code == 200

        operation = scope.await_args.args[1]
        service = AsyncMock(return_value=[])
        session = object()
        with patch("app.services.leads.list_leads", service):
            await operation(session)

        _, claims, page, filters = service.await_args.args
        assert claims == STAFF_CLAIMS
        assert page.q == "50%_off"
        assert page.bounded_limit == 200
        assert filters.source.value == "kakao"
        assert filters.visited is True
        assert filters.consent is None

    @pytest.mark.asyncio
    async def test_invalid_source(self, client: AsyncClient):
        scope = AsyncMock()
        with patch("app.api.v1.leads.with_scope", scope):
            resp = await client.get(BASE, params={"source": "tv"}, headers=bearer(STAFF_TOKEN))
        assert resp.status_code == 422
        scope.assert_not_called()

    @pytest.mark.asyncio
    async def test_unauthenticated_never_opens_a_transaction(self, client: AsyncClient):
        scope = AsyncMock()
        with patch("app.api.v1.leads.with_scope", scope):
            resp = await client.get(BASE)
        assert resp.status_code == 401
        scope.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_tenant_never_opens_a_transaction(self, client: AsyncClient):
        scope = AsyncMock()
        with patch("app.api.v1.leads.with_scope", scope):
            resp = await client.get(BASE, headers=bearer(NO_ORG_TOKEN))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "MISSING_TENANT"
        scope.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_org_never_opens_a_transaction(self, client: AsyncClient):
        scope = AsyncMock()
        with patch("app.api.v1.leads.with_scope", scope):
            resp = await client.get(BASE, headers=bearer(BAD_ORG_TOKEN))
            patched = await client.patch(
                f"{BASE}{uuid.uuid4()}", json={"memo": "x"}, headers=bearer(BAD_ORG_TOKEN)
            )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "MISSING_TENANT"
        assert patched.status_code == 400
        scope.assert_not_called()


class TestCreateLead:
    @pytest.mark.asyncio
    async def test_create(self, client: AsyncClient):
        created = _lead()
        scope = AsyncMock(return_value=created)
        with patch("app.api.v1.leads.with_scope", scope):
            resp = await client.post(
                BASE,
                json={"bride_name": "Jiyeon", "groom_name": "Minho", "source": "instagram"},
                headers=bearer(STAFF_TOKEN),
            )
        assert resp.status_code == 201
        assert resp.json()["id"] == str(created.id)
        assert resp.json()["org_id"] == ORG_A

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"groom_name": "Minho"},
            {"bride_name": "", "groom_name": "Minho"},
            {"bride_name": "Jiyeon", "groom_name": "Minho", "source": "tv"},
            {"bride_name": "Jiyeon", "groom_name": "Minho", "org_id": ORG_A},
        ],
    )
    async def test_invalid_payload(self, client: AsyncClient, payload):
        scope = AsyncMock()
        with patch("app.api.v1.leads.with_scope", scope):
            resp = await client.post(BASE, json=payload, headers=bearer(STAFF_TOKEN))
        assert resp.status_code == 422
        scope.assert_not_called()

    @pytest.mark.asyncio
    async def test_org_comes_from_claims(self):
        from app.services.leads import create_lead
        from wedding_crm_shared.schemas.leads import LeadCreate

        session = AsyncMock()
        session.add = lambda obj: setattr(session, "added", obj)
        lead = await create_lead(
            session, STAFF_CLAIMS, LeadCreate(bride_name="Jiyeon", groom_name="Minho")
        )
        assert lead.org_id == uuid.UUID(ORG_A)
        assert lead.source == "etc"
        assert session.added is lead
        session.flush.assert_awaited_once()


class TestSingleLead:
    @pytest.mark.asyncio
    async def test_get(self, client: AsyncClient):
        lead = _lead()
        with patch("app.api.v1.leads.with_scope", AsyncMock(return_value=lead)):
            resp = await client.get(f"{BASE}{lead.id}", headers=bearer(STAFF_TOKEN))
        assert resp.status_code == 200
        assert resp.json()["bride_phone"] == "010-1111-2222"

    @pytest.mark.asyncio
    async def test_not_found_is_uniform(self, client: AsyncClient):
        """Missing rows and rows of another org look the same."""
        with patch("app.api.v1.leads.with_scope", AsyncMock(return_value=None)):
            resp = await client.get(f"{BASE}{uuid.uuid4()}", headers=bearer(STAFF_TOKEN))
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Lead not found"}

    @pytest.mark.asyncio
    async def test_invalid_id(self, client: AsyncClient):
        resp = await client.get(f"{BASE}not-a-uuid", headers=bearer(STAFF_TOKEN))
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_manager_can_update(self, client: AsyncClient):
        lead = _lead(visited=True)
        scope = AsyncMock(return_value=lead)
        with patch("app.api.v1.leads.with_scope", scope):
            resp = await client.patch(
                f"{BASE}{lead.id}", json={"visited": True}, headers=bearer(MANAGER_TOKEN)
            )
        assert resp.status_code == 200
        assert resp.json()["visited"] is True
        assert scope.await_args.args[0] == MANAGER_CLAIMS

    @pytest.mark.asyncio
    async def test_staff_cannot_update(self, client: AsyncClient):
        scope = AsyncMock()
        with patch("app.api.v1.leads.with_scope", scope):
            resp = await client.patch(
                f"{BASE}{uuid.uuid4()}", json={"visited": True}, headers=bearer(STAFF_TOKEN)
            )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"
        scope.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_rejects_org_change(self, client: AsyncClient):
        resp = await client.patch(
            f"{BASE}{uuid.uuid4()}", json={"org_id": ORG_A}, headers=bearer(MANAGER_TOKEN)
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_update_of_hidden_row_is_not_found(self, client: AsyncClient):
        with patch("app.api.v1.leads.with_scope", AsyncMock(return_value=None)):
            resp = await client.patch(
                f"{BASE}{uuid.uuid4()}", json={"memo": "x"}, headers=bearer(MANAGER_TOKEN)
            )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_manager_can_delete(self, client: AsyncClient):
        lead_id = uuid.uuid4()
        with patch("app.api.v1.leads.with_scope", AsyncMock(return_value=lead_id)):
            resp = await client.delete(f"{BASE}{lead_id}", headers=bearer(MANAGER_TOKEN))
        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "id": str(lead_id)}

    @pytest.mark.asyncio
    async def test_delete_of_missing_row_is_not_found(self, client: AsyncClient):
        with patch("app.api.v1.leads.with_scope", AsyncMock(return_value=None)):
            resp = await client.delete(f"{BASE}{uuid.uuid4()}", headers=bearer(MANAGER_TOKEN))
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Lead not found"}

    @pytest.mark.asyncio
    async def test_staff_cannot_delete(self, client: AsyncClient):
        resp = await client.delete(f"{BASE}{uuid.uuid4()}", headers=bearer(STAFF_TOKEN))
        assert resp.status_code == 403


class TestDatabaseErrors:
    @pytest.mark.asyncio
    async def test_transaction_failure_is_generic(self, client: AsyncClient):
        from sqlalchemy.exc import OperationalError

        error = OperationalError("select 1", {}, Exception("password=hunter2 connection reset"))
        with patch("app.api.v1.leads.with_scope", AsyncMock(side_effect=error)):
            resp = await client.get(BASE, headers=bearer(STAFF_TOKEN))
        assert resp.status_code == 500
        assert resp.json() == {
            "error": {"code": "TRANSACTION_FAILURE", "message": "Server error", "status": 500}
        }
        assert "hunter2" not in resp.text
