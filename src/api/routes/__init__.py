"""API route modules."""

from src.api.routes.admin import router as admin_router
from src.api.routes.device_users import router as device_users_router
from src.api.routes.health import router as health_router
from src.api.routes.items import router as items_router
from src.api.routes.sync import router as sync_router
from src.api.routes.webhook import router as webhook_router

__all__ = [
    "health_router",
    "items_router",
    "device_users_router",
    "sync_router",
    "webhook_router",
    "admin_router",
]
