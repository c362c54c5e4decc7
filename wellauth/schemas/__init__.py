"""
Schemas module untuk WellAuth.
Berisi semua Pydantic schemas untuk request/response validation.
"""

from wellauth.schemas.admin import UnlockAccountRequest, UnlockAccountResponse
from wellauth.schemas.login_attempt import LoginAttemptRequest, LoginAttemptResponse
from wellauth.schemas.password_reset import (
    PasswordResetRequest,
    VerifyResetTokenRequest,
    VerifyResetTokenResponse,
    ResetPasswordRequest
)
from wellauth.schemas.response import (
    MessageResponse,
    ErrorResponse,
    ValidationErrorDetail,
    HealthCheckResponse
)
from wellauth.schemas.session import (
    SessionCreateRequest,
    SessionCreateResponse,
    SessionResponse,
    SessionListResponse,
    SessionRevokeRequest,
    SessionRevokeResponse
)

__all__ = [
    "UnlockAccountRequest",
    "UnlockAccountResponse",
    "LoginAttemptRequest",
    "LoginAttemptResponse",
    "PasswordResetRequest",
    "VerifyResetTokenRequest",
    "VerifyResetTokenResponse",
    "ResetPasswordRequest",
    "MessageResponse",
    "ErrorResponse",
    "ValidationErrorDetail",
    "HealthCheckResponse",
    "SessionCreateRequest",
    "SessionCreateResponse",
    "SessionResponse",
    "SessionListResponse",
    "SessionRevokeRequest",
    "SessionRevokeResponse"
]
