"""
Admin endpoints untuk API v1.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wellauth.api.dependencies.auth import require_admin
from wellauth.api.dependencies.database import get_db
from wellauth.api.dependencies.rate_limit import RateLimitDependency, UserRateLimitDependency
from wellauth.core.constants import ResponseMessage
from wellauth.schemas.admin import UnlockAccountRequest, UnlockAccountResponse
from wellauth.services.identity import AuthContext
from wellauth.services.lockout import AccountLockoutManager
from wellauth.services.rate_limit import RateLimits
from wellauth.utils.network import get_client_ip

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/account-lockouts/unlock",
    response_model=UnlockAccountResponse,
    dependencies=[
        Depends(RateLimitDependency(RateLimits.STRICT, namespace="admin-unlock")),
        Depends(UserRateLimitDependency(RateLimits.MODERATE, namespace="admin-unlock"))
    ]
)
async def unlock_account(
    request: Request,
    payload: UnlockAccountRequest,
    context: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
) -> UnlockAccountResponse:
    """
    Unlock manual akun yang terkunci. Operator dicatat sebagai approved_by.

    Raises:
        AuthorizationError: Caller bukan admin
        NotFoundError: Tidak ada lockout aktif
    """
    manager = AccountLockoutManager(db)
    lockout = await manager.unlock_account(
        user_id=payload.user_id,
        approved_by=context.user_id,
        ip_address=get_client_ip(request)
    )

    return UnlockAccountResponse(
        message=ResponseMessage.ACCOUNT_UNLOCKED,
        user_id=payload.user_id,
        lockout_id=lockout.lo_id,
        locked_until=lockout.lo_unlock_at
    )
