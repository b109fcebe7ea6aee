"""Session claims: the per-request tenant context."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from typing import Any

from app.core.errors import MissingTenant

INVALID_ORG_MESSAGE = "Invalid org_id in user metadata"


@dataclass(frozen=True)
class VerifiedIdentity:
    """An identity returned by the identity provider after token verification."""

    subject_id: str
    email: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class SessionClaims:
    """Claims derived from a verified identity.

    Built fresh for each request and never persisted. Row policies read them
    back from the transaction-local setting written by app.core.scope.
    """

    subject_id: str
    role: str
    org_id: str

    def as_dict(self) -> dict[str, str]:
        # "sub" is the key the row policies (and auth.uid()) read
        return {"sub": self.subject_id, "role": self.role, "org_id": self.org_id}

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), separators=(",", ":"), sort_keys=True)

    def org_uuid(self) -> uuid.UUID:
        """The org id as a UUID, for explicit filters alongside the row policies."""
        try:
            return uuid.UUID(self.org_id)
        except ValueError as exc:
            raise MissingTenant(INVALID_ORG_MESSAGE) from exc
