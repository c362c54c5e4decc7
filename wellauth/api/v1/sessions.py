"""
Session management endpoints untuk API v1.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from wellauth.api.dependencies.auth import get_auth_context
from wellauth.api.dependencies.database import get_db
from wellauth.api.dependencies.rate_limit import RateLimitDependency, UserRateLimitDependency
from wellauth.core.constants import ResponseMessage
from wellauth.schemas.session import (
    SessionCreateRequest,
    SessionCreateResponse,
    SessionResponse,
    SessionListResponse,
    SessionRevokeRequest,
    SessionRevokeResponse
)
from wellauth.services.identity import AuthContext
from wellauth.services.rate_limit import RateLimits
from wellauth.services.session import SessionRegistry
from wellauth.utils.network import get_client_ip, get_user_agent

router = APIRouter(
    prefix="/sessions",
    tags=["sessions"],
    dependencies=[
        Depends(RateLimitDependency(RateLimits.GENEROUS, namespace="sessions")),
        Depends(UserRateLimitDependency(RateLimits.GENEROUS, namespace="sessions"))
    ]
)


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    context: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> SessionListResponse:
    """
    List session aktif milik caller, paling baru aktif lebih dulu.
    """
    registry = SessionRegistry(db)
    sessions = await registry.list_active_sessions(context.user_id)

    return SessionListResponse(
        sessions=[SessionResponse.model_validate(s) for s in sessions],
        total=len(sessions)
    )


@router.post("", response_model=SessionCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: Request,
    payload: SessionCreateRequest,
    context: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> SessionCreateResponse:
    """
    Buat session untuk caller dan catat device fingerprint.

    Args:
        request: FastAPI request object
        payload: Fingerprint device dan metode login
        context: Caller
        db: Database session

    Returns:
        Session ID dan waktu expired
    """
    registry = SessionRegistry(db)
    session = await registry.create_session(
        user_id=context.user_id,
        device_fingerprint=payload.device_fingerprint,
        login_method=payload.login_method,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request)
    )

    return SessionCreateResponse(
        session_id=session.us_id,
        expires_at=session.us_expires_at,
        message=ResponseMessage.SESSION_CREATED
    )


@router.delete("", response_model=SessionRevokeResponse, response_model_exclude_none=True)
async def revoke_sessions(
    request: Request,
    payload: SessionRevokeRequest,
    context: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> SessionRevokeResponse:
    """
    Revoke satu session atau semua session caller.

    Raises:
        NotFoundError: Session tidak ada atau milik user lain
    """
    registry = SessionRegistry(db)
    ip_address = get_client_ip(request)

    if payload.revoke_all:
        revoked = await registry.revoke_all_sessions(context.user_id, ip_address=ip_address)
        return SessionRevokeResponse(
            message=ResponseMessage.ALL_SESSIONS_REVOKED,
            revoked_count=revoked
        )

    await registry.revoke_session(payload.session_id, context.user_id, ip_address=ip_address)
    return SessionRevokeResponse(message=ResponseMessage.SESSION_REVOKED)
