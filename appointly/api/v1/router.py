"""
API v1 router setup
Everything is scoped to one business: /api/v1/businesses/{business_id}/...
"""
from fastapi import APIRouter

from appointly.api.v1 import appointments, availability, calendar, schedule_exceptions

api_v1_router = APIRouter()

BUSINESS_PREFIX = "/businesses/{business_id}"

# ============================================================================
# PUBLIC ROUTES (booking page)
# ============================================================================
api_v1_router.include_router(availability.router, prefix=BUSINESS_PREFIX)

# ============================================================================
# BUSINESS ROUTES (dashboard + self-booking)
# ============================================================================
api_v1_router.include_router(appointments.router, prefix=BUSINESS_PREFIX)
api_v1_router.include_router(schedule_exceptions.router, prefix=BUSINESS_PREFIX)
api_v1_router.include_router(calendar.router, prefix=BUSINESS_PREFIX)


@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and available endpoints."""
    return {
        "version": "1.0",
        "endpoints": {
            "availability": f"{BUSINESS_PREFIX}/availability",
            "appointments": f"{BUSINESS_PREFIX}/appointments",
            "bookings": f"{BUSINESS_PREFIX}/bookings",
            "schedule_exceptions": f"{BUSINESS_PREFIX}/schedule-exceptions",
            "calendar": f"{BUSINESS_PREFIX}/calendar/working-blocks",
        }
    }
