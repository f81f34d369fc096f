# Routers package
from . import auth_router
from . import devices_router
from . import notifications_router
from . import telemetry_router
from . import webhooks_router

__all__ = [
    "auth_router",
    "devices_router",
    "notifications_router",
    "telemetry_router",
    "webhooks_router",
]
