"""
Account-security endpoints untuk API v1.
Menangani pencatatan login attempt dan alur reset password.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from wellauth.api.dependencies.auth import get_identity_provider
from wellauth.api.dependencies.database import get_db
from wellauth.api.dependencies.rate_limit import RateLimitDependency, enforce_rate_limit
from wellauth.core.constants import ResponseMessage
from wellauth.schemas.login_attempt import LoginAttemptRequest, LoginAttemptResponse
from wellauth.schemas.password_reset import (
    PasswordResetRequest,
    VerifyResetTokenRequest,
    VerifyResetTokenResponse,
    ResetPasswordRequest
)
from wellauth.schemas.response import MessageResponse
from wellauth.services.identity import IdentityProvider
from wellauth.services.login_attempt import LoginAttemptTracker
from wellauth.services.password_reset import PasswordResetTokenService
from wellauth.services.rate_limit import RateLimits
from wellauth.utils.network import get_client_ip, get_user_agent

router = APIRouter(prefix="/auth", tags=["account-security"])

# Ceiling per jam dipakai bersama oleh verify-reset-token dan reset-password
reset_token_hourly_limit = RateLimitDependency(RateLimits.HOURLY_CEILING, namespace="reset-token-hourly")


@router.post(
    "/record-login-attempt",
    response_model=LoginAttemptResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(RateLimitDependency(RateLimits.GENEROUS, namespace="login-attempt"))]
)
async def record_login_attempt(
    request: Request,
    response: Response,
    payload: LoginAttemptRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> LoginAttemptResponse:
    """
    Catat hasil login dan kembalikan status lockout.

    Proses:
    1. Rate limit per IP (dependency) dan per email
    2. Simpan attempt
    3. Kunci akun jika gagal login mencapai threshold

    Args:
        request: FastAPI request object untuk mendapatkan IP
        response: FastAPI response object untuk header rate limit
        payload: Email, hasil login, dan alasan gagal
        db: Database session
        identity: Identity provider

    Returns:
        LoginAttemptResponse dengan locked, remaining_attempts atau unlock_at

    Raises:
        RateLimitError: Jika rate limit exceeded
    """
    await enforce_rate_limit(request, response, f"login-attempt:email:{payload.email}", RateLimits.MODERATE)

    tracker = LoginAttemptTracker(db, identity)
    outcome = await tracker.record(
        email=payload.email,
        success=payload.success,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request, payload.user_agent),
        failure_reason=payload.failure_reason
    )

    return LoginAttemptResponse(
        locked=outcome.locked,
        message=outcome.message,
        remaining_attempts=outcome.remaining_attempts,
        unlock_at=outcome.unlock_at,
        warning=outcome.warning
    )


@router.post(
    "/request-password-reset",
    response_model=MessageResponse,
    dependencies=[
        Depends(RateLimitDependency(RateLimits.STRICT, namespace="password-reset")),
        Depends(RateLimitDependency(RateLimits.PASSWORD_RESET_HOURLY, namespace="password-reset-hourly"))
    ]
)
async def request_password_reset(
    request: Request,
    response: Response,
    payload: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> MessageResponse:
    """
    Request password reset.

    Response selalu sama, baik email terdaftar maupun tidak.

    Args:
        request: FastAPI request object
        response: FastAPI response object
        payload: Email akun
        db: Database session
        identity: Identity provider

    Returns:
        Success message
    """
    await enforce_rate_limit(request, response, f"password-reset:email:{payload.email}", RateLimits.STRICT)

    service = PasswordResetTokenService(db, identity)
    await service.request_reset(
        email=payload.email,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request)
    )

    return MessageResponse(success=True, message=ResponseMessage.PASSWORD_RESET_REQUESTED)


@router.post(
    "/verify-reset-token",
    response_model=VerifyResetTokenResponse,
    dependencies=[
        Depends(RateLimitDependency(RateLimits.MODERATE, namespace="verify-reset-token")),
        Depends(reset_token_hourly_limit)
    ]
)
async def verify_reset_token(
    payload: VerifyResetTokenRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> VerifyResetTokenResponse:
    """
    Verifikasi token reset tanpa memakainya.

    Raises:
        TokenError: Token invalid, expired, sudah dipakai, atau sudah di-invalidate
        LockoutError: Pemilik token sedang terkunci
    """
    service = PasswordResetTokenService(db, identity)
    record = await service.verify_token(payload.token)

    return VerifyResetTokenResponse(
        valid=True,
        expires_at=record.prt_expires_at,
        message=ResponseMessage.RESET_TOKEN_VALID
    )


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    dependencies=[
        Depends(RateLimitDependency(RateLimits.STRICT, namespace="reset-password")),
        Depends(reset_token_hourly_limit)
    ]
)
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> MessageResponse:
    """
    Reset password dengan token.

    Semua session user di-revoke dan lockout aktif dilepas.

    Args:
        request: FastAPI request object
        payload: Token dan password baru
        db: Database session
        identity: Identity provider

    Returns:
        Success message

    Raises:
        TokenError: Token tidak bisa dipakai
        LockoutError: Pemilik token sedang terkunci
        NotFoundError: User tidak ditemukan
    """
    service = PasswordResetTokenService(db, identity)
    await service.consume_token(
        token=payload.token,
        new_password=payload.new_password,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request)
    )

    return MessageResponse(success=True, message=ResponseMessage.PASSWORD_RESET_SUCCESS)
