"""
Identity verification: bearer token -> verified identity.

Supports:
- Remote verification against the identity provider (Supabase Auth
  ``GET /auth/v1/user``), one stateless call per request
- Local verification of the provider's HS256 access tokens (PyJWT)
- Optional Redis cache in front of either, bounded by the token's own expiry

Every failure (bad token, expired token, provider down) raises
Unauthenticated with the provider's reason in ``diagnostic``.
"""

from __future__ import annotations

import hashlib
import json
import time
from typing import Any, Awaitable, Callable, Optional, Protocol

import httpx
import jwt
import redis.asyncio as redis
import structlog

from app.core.claims import VerifiedIdentity
from app.core.config import Settings
from app.core.errors import Unauthenticated

log = structlog.get_logger()

CACHE_KEY_PREFIX = "crm:identity:"


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> VerifiedIdentity: ...

    async def aclose(self) -> None: ...


def identity_from_user(user: Any) -> VerifiedIdentity:
    """Build a VerifiedIdentity from the provider's user object."""
    if not isinstance(user, dict) or not user.get("id"):
        raise Unauthenticated(diagnostic="identity provider returned no user id")
    metadata = user.get("user_metadata")
    return VerifiedIdentity(
        subject_id=str(user["id"]),
        email=user.get("email"),
        metadata=metadata if isinstance(metadata, dict) else {},
    )


def _provider_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"{response.status_code}: {response.text[:200]}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return f"{response.status_code}: {body[key]}"
    return f"{response.status_code}: {str(body)[:200]}"


# ---------------------------------------------------------------------------
# Remote (identity provider)
# ---------------------------------------------------------------------------

class SupabaseIdentityVerifier:
    """Verifies tokens by asking the identity provider who they belong to."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._anon_key = anon_key
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
        )

    async def verify(self, token: str) -> VerifiedIdentity:
        try:
            response = await self._client.get(
                "/auth/v1/user",
                headers={"apikey": self._anon_key, "Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise Unauthenticated(
                diagnostic=f"identity provider unreachable: {type(exc).__name__}: {exc}"
            ) from exc

        if response.status_code != 200:
            raise Unauthenticated(diagnostic=_provider_message(response))

        try:
            user = response.json()
        except ValueError as exc:
            raise Unauthenticated(diagnostic="identity provider returned invalid JSON") from exc
        return identity_from_user(user)

    async def aclose(self) -> None:
        await self._client.aclose()


# ---------------------------------------------------------------------------
# Local (JWT)
# ---------------------------------------------------------------------------

class JWTIdentityVerifier:
    """Verifies the provider's access tokens locally with the shared secret."""

    def __init__(self, secret: str, *, algorithm: str = "HS256", audience: Optional[str] = None):
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    async def verify(self, token: str) -> VerifiedIdentity:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={
                    "require": ["exp", "sub"],
                    "verify_aud": self._audience is not None,
                },
            )
        except jwt.PyJWTError as exc:
            raise Unauthenticated(diagnostic=f"{type(exc).__name__}: {exc}") from exc

        metadata = payload.get("user_metadata")
        return VerifiedIdentity(
            subject_id=str(payload["sub"]),
            email=payload.get("email"),
            metadata=metadata if isinstance(metadata, dict) else {},
        )

    async def aclose(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

def token_cache_key(token: str) -> str:
    return CACHE_KEY_PREFIX + hashlib.sha256(token.encode()).hexdigest()


def token_seconds_left(token: str, now: Optional[float] = None) -> int:
    """Seconds until the token's ``exp``; 0 if unknown or already expired.

    The signature is not checked here: this only bounds how long a verified
    result may be reused.
    """
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return 0
    exp = payload.get("exp")
    if not isinstance(exp, (int, float)):
        return 0
    remaining = int(exp - (now if now is not None else time.time()))
    return max(remaining, 0)


class CachingIdentityVerifier:
    """Caches verified identities in Redis until min(ttl, token expiry)."""

    def __init__(
        self,
        inner: IdentityVerifier,
        get_redis: Callable[[], Awaitable[redis.Redis]],
        ttl_seconds: int,
    ):
        self._inner = inner
        self._get_redis = get_redis
        self._ttl_seconds = ttl_seconds

    async def verify(self, token: str) -> VerifiedIdentity:
        ttl = min(self._ttl_seconds, token_seconds_left(token))
        if ttl <= 0:
            return await self._inner.verify(token)

        key = token_cache_key(token)
        try:
            client = await self._get_redis()
            cached = await client.get(key)
        except redis.RedisError as exc:
            log.warning("identity.cache_unavailable", error=str(exc))
            return await self._inner.verify(token)

        if cached:
            try:
                data = json.loads(cached)
                return VerifiedIdentity(
                    subject_id=data["subject_id"],
                    email=data.get("email"),
                    metadata=data.get("metadata") or {},
                )
            except (ValueError, KeyError, TypeError) as exc:
                log.warning("identity.cache_entry_invalid", error=type(exc).__name__)

        identity = await self._inner.verify(token)
        payload = json.dumps(
            {"subject_id": identity.subject_id, "email": identity.email, "metadata": identity.metadata}
        )
        try:
            await client.setex(key, ttl, payload)
        except redis.RedisError as exc:
            log.warning("identity.cache_write_failed", error=str(exc))
        return identity

    async def aclose(self) -> None:
        await self._inner.aclose()


def build_identity_verifier(
    settings: Settings,
    get_redis: Optional[Callable[[], Awaitable[redis.Redis]]] = None,
) -> IdentityVerifier:
    """Create the verifier configured by ``settings``."""
    verifier: IdentityVerifier
    if settings.identity_verifier == "jwt":
        verifier = JWTIdentityVerifier(
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            audience=settings.jwt_audience,
        )
    else:
        verifier = SupabaseIdentityVerifier(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.identity_timeout_seconds,
        )

    if settings.identity_cache_ttl_seconds > 0 and get_redis is not None:
        verifier = CachingIdentityVerifier(verifier, get_redis, settings.identity_cache_ttl_seconds)
    return verifier
