from .admin import router as admin_router
from .channels import router as channels_router
from .health import router as health_router

__all__ = ["admin_router", "channels_router", "health_router"]
