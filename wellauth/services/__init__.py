"""
Services module untuk WellAuth.
Berisi business logic layer yang terpisah dari presentation dan data layers.
"""

from wellauth.services.email import EmailService
from wellauth.services.identity import (
    AuthContext,
    IdentityProvider,
    LocalIdentityProvider,
    AuthContextResolver
)
from wellauth.services.lockout import AccountLockoutManager
from wellauth.services.login_attempt import LoginAttemptTracker, LoginAttemptOutcome
from wellauth.services.password_reset import PasswordResetTokenService
from wellauth.services.rate_limit import (
    RateLimiter,
    RateLimitConfig,
    RateLimitResult,
    RateLimits,
    InMemoryRateLimitStore,
    RedisRateLimitStore
)
from wellauth.services.security_log import SecurityEventService
from wellauth.services.session import SessionRegistry

__all__ = [
    "EmailService",
    "AuthContext",
    "IdentityProvider",
    "LocalIdentityProvider",
    "AuthContextResolver",
    "AccountLockoutManager",
    "LoginAttemptTracker",
    "LoginAttemptOutcome",
    "PasswordResetTokenService",
    "RateLimiter",
    "RateLimitConfig",
    "RateLimitResult",
    "RateLimits",
    "InMemoryRateLimitStore",
    "RedisRateLimitStore",
    "SecurityEventService",
    "SessionRegistry"
]
