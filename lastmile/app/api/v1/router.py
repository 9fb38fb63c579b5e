"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from lastmile.app.api.v1.endpoints import (
    auth, routes, deliveries, reports, shifts, driver, admin
)

router = APIRouter()

# Authentication endpoints
router.include_router(auth.router)

# Driver app endpoints
router.include_router(routes.router)
router.include_router(deliveries.router)
router.include_router(deliveries.stops_router)
router.include_router(reports.router)
router.include_router(shifts.router)
router.include_router(driver.router)

# Dispatch console endpoints
router.include_router(admin.router)


@router.get("/health", tags=["Health"])
async def api_health():
    """Connectivity probe used by the driver client."""
    return {"status": "healthy"}
