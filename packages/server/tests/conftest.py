"""
Shared fixtures: a fake identity verifier, an app client wired to it, and a
recording session factory for scoped-transaction tests.
"""

from __future__ import annotations

import uuid
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.auth import get_identity_verifier
from app.core.claims import SessionClaims, VerifiedIdentity
from app.core.errors import Unauthenticated
from app.main import app as fastapi_app

ORG_A = str(uuid.UUID("aaaaaaaa-0000-4000-8000-000000000001"))
ORG_B = str(uuid.UUID("bbbbbbbb-0000-4000-8000-000000000002"))
MANAGER_ID = str(uuid.UUID("11111111-0000-4000-8000-000000000001"))
STAFF_ID = str(uuid.UUID("22222222-0000-4000-8000-000000000002"))
OTHER_ORG_USER_ID = str(uuid.UUID("33333333-0000-4000-8000-000000000003"))
NO_ORG_USER_ID = str(uuid.UUID("44444444-0000-4000-8000-000000000004"))

MANAGER_TOKEN = "manager-token"
STAFF_TOKEN = "staff-token"
OTHER_ORG_TOKEN = "other-org-token"
NO_ORG_TOKEN = "no-org-token"
BAD_ORG_TOKEN = "bad-org-token"
EXPIRED_TOKEN = "expired-token"

IDENTITIES = {
    MANAGER_TOKEN: VerifiedIdentity(
        subject_id=MANAGER_ID, metadata={"org_id": ORG_A, "role": "manager"}
    ),
    STAFF_TOKEN: VerifiedIdentity(
        subject_id=STAFF_ID, metadata={"org_id": ORG_A, "role": "staff"}
    ),
    OTHER_ORG_TOKEN: VerifiedIdentity(
        subject_id=OTHER_ORG_USER_ID, metadata={"org_id": ORG_B, "role": "admin"}
    ),
    NO_ORG_TOKEN: VerifiedIdentity(subject_id=NO_ORG_USER_ID, metadata={"role": "staff"}),
    BAD_ORG_TOKEN: VerifiedIdentity(
        subject_id=NO_ORG_USER_ID, metadata={"org_id": "org-1", "role": "manager"}
    ),
}

MANAGER_CLAIMS = SessionClaims(subject_id=MANAGER_ID, role="manager", org_id=ORG_A)
STAFF_CLAIMS = SessionClaims(subject_id=STAFF_ID, role="staff", org_id=ORG_A)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class FakeVerifier:
    """Resolves tokens from a fixed table; anything else is rejected."""

    def __init__(self, identities: Optional[dict[str, VerifiedIdentity]] = None):
        self.identities = identities if identities is not None else IDENTITIES
        self.calls: list[str] = []
        self.closed = False

    async def verify(self, token: str) -> VerifiedIdentity:
        self.calls.append(token)
        identity = self.identities.get(token)
        if identity is None:
            raise Unauthenticated(diagnostic=f"unknown token {token!r}")
        return identity

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def app(verifier):
    fastapi_app.dependency_overrides[get_identity_verifier] = lambda: verifier
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Recording session (no database)
# ---------------------------------------------------------------------------


class FakeTransaction:
    def __init__(self, session: "FakeSession"):
        self.session = session

    async def __aenter__(self):
        self.session.events.append("begin")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.session.events.append("rollback" if exc_type else "commit")
        return False


class FakeSession:
    """Stands in for AsyncSession: records statements and transaction events."""

    def __init__(self, fail_on: Optional[str] = None, error: Optional[Exception] = None):
        self.fail_on = fail_on
        self.error = error
        self.events: list[str] = []
        self.executed: list[tuple[str, Optional[dict]]] = []

    def begin(self) -> FakeTransaction:
        return FakeTransaction(self)

    async def execute(self, statement, params=None):
        sql = str(statement)
        self.executed.append((sql, params))
        if self.fail_on is not None and self.fail_on in sql:
            raise self.error or RuntimeError("statement failed")
        return None

    async def __aenter__(self):
        self.events.append("open")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.events.append("close")
        return False


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()
