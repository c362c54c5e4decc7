"""
API v1 module.
Berisi semua endpoints untuk API versi 1.
"""

from wellauth.api.v1.admin import router as admin_router
from wellauth.api.v1.auth import router as auth_router
from wellauth.api.v1.health import router as health_router
from wellauth.api.v1.sessions import router as sessions_router

__all__ = ["admin_router", "auth_router", "health_router", "sessions_router"]
