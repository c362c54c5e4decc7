"""
Konstanta yang digunakan di seluruh aplikasi WellAuth.
"""

from enum import Enum


class SecurityEventType(str, Enum):
    """Tipe event yang dicatat di security log."""
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_UNLOCKED = "account_unlocked"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PASSWORD_RESET_REQUEST_LOCKED_ACCOUNT = "password_reset_request_locked_account"
    PASSWORD_RESET_NONEXISTENT_USER = "password_reset_nonexistent_user"
    PASSWORD_RESET_COMPLETED = "password_reset_completed"
    NEW_DEVICE_LOGIN = "new_device_login"
    DEVICE_TRUSTED = "device_trusted"
    SESSION_REVOKED = "session_revoked"
    SESSIONS_REVOKED_ALL = "sessions_revoked_all"


class Severity(str, Enum):
    """Tingkat keparahan security event."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class UnlockMethod(str, Enum):
    """Cara lockout dilepas."""
    AUTOMATIC = "automatic"
    EXPIRED = "expired"
    PASSWORD_RESET = "password_reset"
    MANUAL = "manual"


class LoginMethod(str, Enum):
    """Metode login yang membuat session."""
    EMAIL = "email"
    OAUTH = "oauth"
    MAGIC_LINK = "magic_link"
    SSO = "sso"


class SessionEndReason(str, Enum):
    """Alasan session dinonaktifkan."""
    USER_REVOKED = "user_revoked"
    USER_REVOKED_ALL = "user_revoked_all"
    PASSWORD_RESET = "password_reset"


class UserRole(str, Enum):
    """Role user yang dikenal core."""
    USER = "user"
    SPECIALIST = "specialist"
    COMPANY_ADMIN = "company_admin"
    ADMIN = "admin"


# Response Messages
class ResponseMessage:
    """Pesan response standar."""
    LOGIN_RECORDED = "Login attempt recorded"
    ACCOUNT_LOCKED = "Account locked due to too many failed login attempts"
    ACCOUNT_STILL_LOCKED = "Account is temporarily locked"
    LOW_ATTEMPTS_WARNING = "Only {remaining} login attempt(s) remaining before the account is locked"
    PASSWORD_RESET_REQUESTED = "If that email exists, a password reset link has been sent."
    RESET_TOKEN_VALID = "Reset token is valid"
    PASSWORD_RESET_SUCCESS = "Password reset successfully. Please login with your new password."
    SESSION_CREATED = "Session created successfully"
    SESSION_REVOKED = "Session revoked successfully"
    ALL_SESSIONS_REVOKED = "All sessions revoked successfully"
    ACCOUNT_UNLOCKED = "Account unlocked successfully"

    USER_NOT_FOUND = "User not found"
    SESSION_NOT_FOUND = "Session not found or unauthorized"
    LOCKOUT_NOT_FOUND = "No active lockout for this account"


# Regex Patterns
class RegexPattern:
    """Regex patterns untuk validasi."""
    RESET_TOKEN = r'^[0-9a-fA-F]{64}$'


# Default Values
class DefaultValue:
    """Nilai default untuk berbagai field."""
    UNKNOWN_IP = "unknown"
    MAX_EMAIL_LENGTH = 255
    MAX_FAILURE_REASON_LENGTH = 200
    MAX_USER_AGENT_LENGTH = 500
    MAX_FINGERPRINT_LENGTH = 500
    LOW_ATTEMPTS_WARNING_THRESHOLD = 2
