"""API v1 routers."""

from fastapi import APIRouter

from .alerts import router as alerts_router
from .audit_logs import router as audit_logs_router
from .auth import router as auth_router
from .bookings import router as bookings_router
from .dashboard import router as dashboard_router
from .finance import router as finance_router
from .guests import router as guests_router
from .hotel import router as hotel_router
from .hotels import router as hotels_router
from .monitoring import router as monitoring_router
from .rooms import router as rooms_router
from .users import router as users_router

# Create v1 router that includes all v1 endpoints
router = APIRouter(prefix="/v1")

# Platform administration
router.include_router(auth_router)
router.include_router(hotels_router)
router.include_router(users_router)
router.include_router(alerts_router)
router.include_router(monitoring_router)
router.include_router(audit_logs_router)

# Hotel-scoped resources
router.include_router(dashboard_router)
router.include_router(rooms_router)
router.include_router(guests_router)
router.include_router(bookings_router)
router.include_router(finance_router)
router.include_router(hotel_router)

__all__ = [
    "router",
    "alerts_router",
    "audit_logs_router",
    "auth_router",
    "bookings_router",
    "dashboard_router",
    "finance_router",
    "guests_router",
    "hotel_router",
    "hotels_router",
    "monitoring_router",
    "rooms_router",
    "users_router",
]
