"""
Authentication and tenant resolution for Wedding CRM.

Pipeline (each step fails closed, before any data access):
- Credential resolver: Authorization header -> bearer token
- Identity verifier: bearer token -> verified identity (app.core.identity)
- Claims extractor: identity metadata -> SessionClaims(subject_id, role, org_id)

The resulting claims are the only input app.core.scope accepts.
"""

from __future__ import annotations

import re
import uuid
from typing import Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from app.core.claims import INVALID_ORG_MESSAGE, SessionClaims, VerifiedIdentity
from app.core.config import get_settings
from app.core.errors import MISSING_BEARER_MESSAGE, Forbidden, MissingTenant, Unauthenticated
from app.core.identity import IdentityVerifier, build_identity_verifier
from app.core.redis import get_redis
from wedding_crm_shared.schemas.common import DEFAULT_ROLE, PRIVILEGED_ROLES

log = structlog.get_logger()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Credential resolver
# ---------------------------------------------------------------------------

def resolve_bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Raises Unauthenticated when the header is absent, uses another scheme,
    or carries an empty token.
    """
    if not authorization:
        raise Unauthenticated(MISSING_BEARER_MESSAGE)
    value = authorization.strip()
    match = _BEARER_PREFIX.match(value)
    if not match:
        raise Unauthenticated(MISSING_BEARER_MESSAGE)
    token = value[match.end():].strip()
    if not token:
        raise Unauthenticated(MISSING_BEARER_MESSAGE)
    return token


# ---------------------------------------------------------------------------
# Claims extractor
# ---------------------------------------------------------------------------

def extract_claims(identity: VerifiedIdentity) -> SessionClaims:
    """Derive session claims from identity metadata.

    ``role`` falls back to guest. ``org_id`` has no fallback and must be a UUID:
    an identity not bound to an org cannot act at all.
    """
    metadata = identity.metadata or {}

    role = metadata.get("role")
    if not isinstance(role, str) or not role:
        role = DEFAULT_ROLE.value

    org_id = metadata.get("org_id")
    if not isinstance(org_id, str) or not org_id:
        raise MissingTenant()
    try:
        uuid.UUID(org_id)
    except ValueError:
        log.warning("auth.invalid_org_id", subject_id=identity.subject_id)
        raise MissingTenant(INVALID_ORG_MESSAGE) from None

    return SessionClaims(subject_id=identity.subject_id, role=role, org_id=org_id)


async def resolve_claims(
    authorization: Optional[str], verifier: IdentityVerifier
) -> SessionClaims:
    """Header -> token -> verified identity -> claims."""
    token = resolve_bearer_token(authorization)
    identity = await verifier.verify(token)
    return extract_claims(identity)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

_verifier: IdentityVerifier | None = None


def get_identity_verifier() -> IdentityVerifier:
    """Process-wide verifier built from settings on first use."""
    global _verifier
    if _verifier is None:
        _verifier = build_identity_verifier(get_settings(), get_redis=get_redis)
    return _verifier


async def close_identity_verifier() -> None:
    global _verifier
    if _verifier is not None:
        await _verifier.aclose()
        _verifier = None


async def get_claims(
    request: Request,
    authorization: Optional[str] = Depends(api_key_header),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> SessionClaims:
    """Main authentication dependency: the claims every tenant route runs under."""
    claims = await resolve_claims(authorization, verifier)
    request.state.claims = claims
    structlog.contextvars.bind_contextvars(
        subject_id=claims.subject_id, org_id=claims.org_id, role=claims.role
    )
    return claims


# ---------------------------------------------------------------------------
# Authorization dependencies (role checks)
# ---------------------------------------------------------------------------

def require_roles(*roles, message: str = "Insufficient role"):
    """Dependency factory: the caller's role must be one of ``roles``.

    The check depends only on the caller's role, never on whether a row
    exists.
    """
    allowed = frozenset(getattr(r, "value", r) for r in roles)

    async def _require(claims: SessionClaims = Depends(get_claims)) -> SessionClaims:
        if claims.role not in allowed:
            raise Forbidden(message)
        return claims

    return _require


# Mirrors the update/delete row policies on customers, leads and deals.
require_manager = require_roles(*PRIVILEGED_ROLES, message="Manager access required")
