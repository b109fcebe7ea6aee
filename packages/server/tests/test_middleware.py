"""
Tests for security headers and request-context middleware.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.middleware import (
    REQUEST_ID_HEADER,
    SECURITY_HEADERS,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
)


class TestSecurityHeaders:
    def _make_app(self) -> FastAPI:
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"ok": True}

        return app

    def test_headers_present(self):
        client = TestClient(self._make_app())
        resp = client.get("/test")
        assert resp.status_code == 200
        for header, value in SECURITY_HEADERS.items():
            assert resp.headers.get(header) == value

    def test_docs_keep_their_assets(self):
        client = TestClient(self._make_app())
        resp = client.get("/docs")
        assert resp.status_code == 200
        assert "Content-Security-Policy" not in resp.headers
        assert resp.headers["X-Frame-Options"] == "DENY"


class TestRequestContext:
    def _make_app(self, seen: dict) -> FastAPI:
        app = FastAPI()
        app.add_middleware(RequestContextMiddleware)

        @app.get("/test")
        async def test_endpoint():
            seen.update(structlog.contextvars.get_contextvars())
            return {"ok": True}

        return app

    def test_request_id_bound_for_handlers(self):
        seen: dict = {}
        client = TestClient(self._make_app(seen))
        resp = client.get("/test", headers={REQUEST_ID_HEADER: "abc-123"})
        assert resp.headers[REQUEST_ID_HEADER] == "abc-123"
        assert seen["request_id"] == "abc-123"

    def test_request_id_generated(self):
        seen: dict = {}
        client = TestClient(self._make_app(seen))
        first = client.get("/test").headers[REQUEST_ID_HEADER]
        second = client.get("/test").headers[REQUEST_ID_HEADER]
        assert first != second
        assert seen["request_id"] == second
