"""
Error taxonomy for the request pipeline.

Authentication and tenant errors are raised at the boundary, before any data
access. Every CRMError renders to the same envelope the security middleware
uses: ``{"error": {"code", "message", "status"}}``.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import JSONResponse

log = structlog.get_logger()

MISSING_BEARER_MESSAGE = "Missing Authorization Bearer token"
MISSING_TENANT_MESSAGE = "Missing org_id in user metadata"


class CRMError(Exception):
    code = "ERROR"
    status_code = 500
    message = "Server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_response(self) -> JSONResponse:
        return error_response(self.code, self.message, self.status_code)


class Unauthenticated(CRMError):
    """Missing, invalid or expired credential.

    ``diagnostic`` holds the identity provider's reason. It is logged, never
    sent to the client.
    """

    code = "UNAUTHENTICATED"
    status_code = 401
    message = "Unauthorized"

    def __init__(self, message: Optional[str] = None, *, diagnostic: Optional[str] = None):
        super().__init__(message)
        self.diagnostic = diagnostic


class MissingTenant(CRMError):
    """The verified identity is not bound to an organization yet."""

    code = "MISSING_TENANT"
    status_code = 400
    message = MISSING_TENANT_MESSAGE


class Forbidden(CRMError):
    code = "FORBIDDEN"
    status_code = 403
    message = "Insufficient role"


class TransactionFailure(CRMError):
    code = "TRANSACTION_FAILURE"
    status_code = 500
    message = "Server error"


def error_response(code: str, message: str, status: int) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": {"code": code, "message": message, "status": status}},
        headers={"WWW-Authenticate": "Bearer"} if status == 401 else None,
    )


async def crm_error_handler(request: Request, exc: CRMError) -> JSONResponse:
    if isinstance(exc, Unauthenticated):
        log.info(
            "auth.rejected",
            path=request.url.path,
            reason=exc.message,
            diagnostic=exc.diagnostic,
        )
    elif isinstance(exc, MissingTenant):
        log.info("auth.missing_tenant", path=request.url.path)
    return exc.to_response()


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.error(
        "db.transaction_failed",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return TransactionFailure().to_response()


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CRMError, crm_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
