"""
Models module untuk WellAuth.
Berisi semua SQLAlchemy models untuk database.
"""

from wellauth.db.base import Base
from wellauth.models.user import User
from wellauth.models.login_attempt import LoginAttempt
from wellauth.models.lockout import AccountLockout
from wellauth.models.password_reset import PasswordResetToken
from wellauth.models.session import UserSession
from wellauth.models.device import DeviceFingerprint
from wellauth.models.security_log import SecurityLog

__all__ = [
    "Base",
    "User",
    "LoginAttempt",
    "AccountLockout",
    "PasswordResetToken",
    "UserSession",
    "DeviceFingerprint",
    "SecurityLog"
]
