"""
Identity service untuk WellAuth.

Core tidak menerbitkan token. ``IdentityProvider`` adalah batas ke identity
provider eksternal: verifikasi bearer credential, lookup user, dan update
password. ``LocalIdentityProvider`` memakai tabel ``users`` dan JWT HS256
yang ditandatangani dengan secret bersama.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from wellauth.core.exceptions import AuthError, AuthorizationError
from wellauth.core.security import security
from wellauth.models.user import User


@dataclass(frozen=True)
class AuthContext:
    """Identitas caller yang sudah diverifikasi."""
    user_id: UUID
    email: Optional[str]
    role: Optional[str]

    def has_role(self, *roles: str) -> bool:
        return self.role is not None and self.role in roles

    def require_role(self, *roles: str) -> None:
        """
        Raises:
            AuthorizationError: Jika role caller tidak termasuk ``roles``
        """
        if not self.has_role(*roles):
            raise AuthorizationError()


class IdentityProvider(ABC):
    """Interface ke identity provider."""

    @abstractmethod
    async def verify_access_token(self, token: str) -> dict:
        """Verifikasi bearer token dan kembalikan claims. Raise AuthError jika gagal."""

    @abstractmethod
    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def update_password(self, user_id: UUID, new_password: str) -> None:
        """Ganti credential user. Perubahan ikut transaksi caller."""


class LocalIdentityProvider(IdentityProvider):
    """Identity provider berbasis tabel users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def verify_access_token(self, token: str) -> dict:
        return security.decode_access_token(token)

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.u_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.u_email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def update_password(self, user_id: UUID, new_password: str) -> None:
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise ValueError(f"User {user_id} does not exist")
        user.u_password_hash = security.hash_password(new_password)
        await self.db.flush()


class AuthContextResolver:
    """
    Resolve bearer credential menjadi AuthContext.

    Args:
        identity: Identity provider yang memverifikasi token dan memberi role
    """

    def __init__(self, identity: IdentityProvider):
        self.identity = identity

    @staticmethod
    def extract_bearer_token(authorization: Optional[str]) -> str:
        """
        Ambil token dari header Authorization.

        Raises:
            AuthError: Header tidak ada atau bukan skema Bearer
        """
        if not authorization:
            raise AuthError("Missing authorization header")
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthError("Invalid authorization header")
        return token.strip()

    async def resolve(self, token: str) -> AuthContext:
        """
        Verifikasi token dan resolve role caller.

        Args:
            token: Bearer token

        Returns:
            AuthContext

        Raises:
            AuthError: Token tidak valid atau user tidak aktif
        """
        claims = await self.identity.verify_access_token(token)

        try:
            user_id = UUID(str(claims["sub"]))
        except (KeyError, ValueError):
            raise AuthError("Invalid token claims")

        user = await self.identity.get_user_by_id(user_id)
        if user is None or not user.u_is_active:
            raise AuthError("Invalid or expired token")

        return AuthContext(user_id=user.u_id, email=user.u_email, role=user.u_role)

    @staticmethod
    def require_role(context: AuthContext, roles: Sequence[str]) -> AuthContext:
        context.require_role(*roles)
        return context
