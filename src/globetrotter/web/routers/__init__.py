from globetrotter.web.routers.admin import router as admin_router
from globetrotter.web.routers.auth import router as auth_router
from globetrotter.web.routers.profile import router as profile_router
from globetrotter.web.routers.trips import router as trips_router

__all__ = [
    "admin_router",
    "auth_router",
    "profile_router",
    "trips_router",
]
