"""
API dependencies module.
Berisi reusable dependencies untuk FastAPI endpoints.
"""

from wellauth.api.dependencies.auth import (
    get_identity_provider,
    get_auth_context,
    RoleChecker,
    require_admin
)
from wellauth.api.dependencies.database import get_db
from wellauth.api.dependencies.rate_limit import (
    get_rate_limiter,
    enforce_rate_limit,
    RateLimitDependency,
    UserRateLimitDependency
)

__all__ = [
    "get_identity_provider",
    "get_auth_context",
    "RoleChecker",
    "require_admin",
    "get_db",
    "get_rate_limiter",
    "enforce_rate_limit",
    "RateLimitDependency",
    "UserRateLimitDependency"
]
