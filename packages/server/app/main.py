"""
Wedding CRM API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from app.core.auth import close_identity_verifier
from app.core.config import get_settings
from app.core.database import ping_database
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from app.core.redis import close_redis
from app.api.v1 import router as api_v1_router

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Wedding CRM",
        description="Multi-tenant CRM for wedding consultancies: leads, customers, appointments.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (last added runs outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check: the database answers through the pool."""
        try:
            await ping_database()
        except Exception as exc:
            log.warning("ready.database_unavailable", error=f"{type(exc).__name__}: {exc}")
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info(
            "Wedding CRM starting",
            identity_verifier=settings.identity_verifier,
            rls_role=settings.database_rls_role,
        )

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Wedding CRM shutting down")
        await close_identity_verifier()
        await close_redis()

    return app


app = create_app()
