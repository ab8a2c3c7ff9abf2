"""
API route modules.
"""

from api.routes.users import router as users_router
from api.routes.health import router as health_router

__all__ = ["users_router", "health_router"]
