"""
API v1 Router

Tenant resources are not prefixed with an org: the org comes from the
caller's verified claims.
"""

from fastapi import APIRouter
from . import appointments, customers, leads, me, organizations
from wedding_crm_shared.schemas.common import ErrorResponse

router = APIRouter()

# Error envelopes raised by the claims pipeline before any handler runs
TENANT_ERRORS = {
    400: {"model": ErrorResponse, "description": "Identity not bound to an org"},
    401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
    403: {"model": ErrorResponse, "description": "Role not allowed"},
    500: {"model": ErrorResponse, "description": "Transaction failed"},
}

# Non-tenant routes (public org list, caller claims)
router.include_router(organizations.router)
router.include_router(me.router, responses=TENANT_ERRORS)

# Tenant resources
router.include_router(leads.router, prefix="/leads", tags=["Leads"], responses=TENANT_ERRORS)
router.include_router(customers.router, prefix="/customers", tags=["Customers"], responses=TENANT_ERRORS)
router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"], responses=TENANT_ERRORS)


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/orgs",
            "/me",
            "/leads",
            "/customers",
            "/appointments",
        ],
    }
