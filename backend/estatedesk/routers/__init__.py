"""API Routers for EstateDesk."""

from estatedesk.routers.properties import router as properties_router
from estatedesk.routers.units import router as units_router
from estatedesk.routers.maintenance import router as maintenance_router
from estatedesk.routers.billing import router as billing_router

__all__ = [
    "properties_router",
    "units_router",
    "maintenance_router",
    "billing_router",
]
