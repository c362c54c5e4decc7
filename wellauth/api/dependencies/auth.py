"""
Authentication dependencies untuk FastAPI.
Menyediakan dependency injection untuk autentikasi dan otorisasi.
"""

from typing import Optional, Annotated, Sequence

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from wellauth.api.dependencies.database import get_db
from wellauth.core.constants import UserRole
from wellauth.core.exceptions import AuthError
from wellauth.services.identity import (
    AuthContext,
    AuthContextResolver,
    IdentityProvider,
    LocalIdentityProvider
)

# Bearer scheme; error ditangani sendiri agar memakai envelope standar
bearer_scheme = HTTPBearer(auto_error=False)


async def get_identity_provider(
    db: Annotated[AsyncSession, Depends(get_db)]
) -> IdentityProvider:
    """
    Identity provider untuk request ini.

    Args:
        db: Database session

    Returns:
        IdentityProvider
    """
    return LocalIdentityProvider(db)


async def get_auth_context(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)]
) -> AuthContext:
    """
    Resolve caller dari bearer token.

    Args:
        request: FastAPI request
        credentials: Bearer credentials dari Authorization header
        identity: Identity provider

    Returns:
        AuthContext caller

    Raises:
        AuthError: Token tidak ada atau tidak valid
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Missing authorization header")

    context = await AuthContextResolver(identity).resolve(credentials.credentials)
    request.state.user_id = context.user_id
    return context


class RoleChecker:
    """
    Dependency class untuk role checking.

    Args:
        allowed_roles: Role yang boleh mengakses endpoint
    """

    def __init__(self, allowed_roles: Sequence[str]):
        self.allowed_roles = [
            role.value if isinstance(role, UserRole) else role
            for role in allowed_roles
        ]

    async def __call__(
        self,
        context: Annotated[AuthContext, Depends(get_auth_context)]
    ) -> AuthContext:
        """
        Raises:
            AuthorizationError: Role caller tidak termasuk allowed_roles
        """
        return AuthContextResolver.require_role(context, self.allowed_roles)


require_admin = RoleChecker([UserRole.ADMIN])
