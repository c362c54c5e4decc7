"""
Core module untuk WellAuth.
Berisi komponen inti aplikasi seperti konfigurasi, keamanan, exceptions, dan konstanta.
"""

from wellauth.core.config import settings, SecurityPolicy
from wellauth.core.exceptions import (
    WellAuthException,
    ValidationError,
    AuthError,
    AuthorizationError,
    NotFoundError,
    RateLimitError,
    LockoutError,
    TokenError,
    InternalError
)

__all__ = [
    "settings",
    "SecurityPolicy",
    "WellAuthException",
    "ValidationError",
    "AuthError",
    "AuthorizationError",
    "NotFoundError",
    "RateLimitError",
    "LockoutError",
    "TokenError",
    "InternalError"
]
