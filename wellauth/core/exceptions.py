"""
Custom exceptions untuk WellAuth.
Semua custom exceptions harus inherit dari base exceptions ini.

Setiap exception membawa ``code`` yang stabil sehingga client bisa
membedakan kondisi tanpa mem-parsing message.
"""

import math
import time
from datetime import datetime, timezone
from typing import Optional, Dict, Any


class WellAuthException(Exception):
    """Base exception untuk semua custom exceptions di WellAuth."""

    default_message = "Internal server error"
    default_code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code
            code: Machine readable error code
            details: Additional error details
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def headers(self) -> Dict[str, str]:
        """Header tambahan untuk response error."""
        return {}


class ValidationError(WellAuthException):
    """Exception untuk input yang tidak valid."""

    default_message = "Invalid input"
    default_code = "VALIDATION_ERROR"
    status_code = 400


class AuthError(WellAuthException):
    """Exception untuk credential yang hilang atau tidak valid."""

    default_message = "Missing or invalid authorization"
    default_code = "UNAUTHORIZED"
    status_code = 401

    @property
    def headers(self) -> Dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class AuthorizationError(WellAuthException):
    """Exception untuk credential valid tapi role tidak cukup."""

    default_message = "Insufficient permissions"
    default_code = "FORBIDDEN"
    status_code = 403


class NotFoundError(WellAuthException):
    """Exception untuk resource tidak ditemukan."""

    default_message = "Resource not found"
    default_code = "NOT_FOUND"
    status_code = 404


class InternalError(WellAuthException):
    """Exception untuk kegagalan internal yang tidak boleh bocor ke client."""


class ServiceUnavailableError(WellAuthException):
    """Exception untuk collaborator eksternal yang tidak tersedia."""

    default_message = "Service temporarily unavailable"
    default_code = "SERVICE_UNAVAILABLE"
    status_code = 503


class RateLimitError(WellAuthException):
    """Exception untuk rate limit exceeded."""

    default_message = "Too many requests. Please try again later."
    default_code = "RATE_LIMIT_EXCEEDED"
    status_code = 429

    def __init__(self, retry_at: float, message: Optional[str] = None, limit: Optional[int] = None):
        """
        Args:
            retry_at: Unix time (detik) kapan caller boleh mencoba lagi
            message: Error message
            limit: Batas request pada window yang terlampaui
        """
        self.retry_at = retry_at
        self.limit = limit
        details = {
            "retry_at": int(math.ceil(retry_at)),
            "reset_at": datetime.fromtimestamp(retry_at, tz=timezone.utc).isoformat(),
        }
        super().__init__(message, details=details)

    @property
    def retry_after(self) -> int:
        """Detik sampai retry diizinkan, minimal 1."""
        return max(1, int(math.ceil(self.retry_at - time.time())))

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Retry-After": str(self.retry_after)}
        if self.limit is not None:
            headers["X-RateLimit-Limit"] = str(self.limit)
            headers["X-RateLimit-Remaining"] = "0"
            headers["X-RateLimit-Reset"] = str(int(math.ceil(self.retry_at)))
        return headers


class LockoutError(WellAuthException):
    """Exception untuk akun yang sedang terkunci."""

    default_message = "Account is temporarily locked. Please try again later."
    default_code = "ACCOUNT_LOCKED"
    status_code = 403

    def __init__(self, unlock_at: datetime, message: Optional[str] = None):
        self.unlock_at = unlock_at
        super().__init__(message, details={"unlock_at": unlock_at.isoformat()})


class TokenError(WellAuthException):
    """Base exception untuk error token reset password."""

    default_message = "Invalid or expired reset token"
    default_code = "INVALID_TOKEN"
    status_code = 400

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, details={"valid": False})


class InvalidTokenError(TokenError):
    """Token tidak dikenal."""


class ExpiredTokenError(TokenError):
    """Token sudah melewati masa berlaku."""

    default_message = "Reset token has expired"
    default_code = "TOKEN_EXPIRED"


class UsedTokenError(TokenError):
    """Token sudah pernah dipakai."""

    default_message = "Reset token has already been used"
    default_code = "TOKEN_USED"


class InvalidatedTokenError(TokenError):
    """Token sudah di-invalidate oleh request yang lebih baru."""

    default_message = "Reset token has been invalidated"
    default_code = "TOKEN_INVALIDATED"
