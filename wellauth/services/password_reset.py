"""
Password reset token service untuk WellAuth.

Token reset adalah 64 karakter hex (256 bit) yang hanya dikirim lewat email;
database hanya menyimpan SHA-256 hash-nya. Token sekali pakai: konsumsi
dilakukan dengan satu UPDATE bersyarat (compare-and-set), bukan
baca-lalu-tulis.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, exists
from sqlalchemy.exc import SQLAlchemyError

from wellauth.core.config import SecurityPolicy, get_security_policy
from wellauth.core.constants import (
    SecurityEventType, Severity, UnlockMethod, SessionEndReason, ResponseMessage
)
from wellauth.core.exceptions import (
    LockoutError,
    NotFoundError,
    InvalidTokenError,
    ExpiredTokenError,
    UsedTokenError,
    InvalidatedTokenError
)
from wellauth.core.security import security
from wellauth.db.base import utcnow
from wellauth.models.lockout import AccountLockout
from wellauth.models.password_reset import PasswordResetToken
from wellauth.services.email import EmailService
from wellauth.services.identity import IdentityProvider
from wellauth.services.lockout import AccountLockoutManager
from wellauth.services.security_log import SecurityEventService
from wellauth.services.session import SessionRegistry

logger = logging.getLogger(__name__)


class PasswordResetTokenService:
    """
    Service class untuk password reset flow.
    """

    def __init__(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        lockout_manager: Optional[AccountLockoutManager] = None,
        session_registry: Optional[SessionRegistry] = None,
        email_service: Optional[EmailService] = None,
        policy: Optional[SecurityPolicy] = None
    ):
        """
        Initialize password reset service.

        Args:
            db: Database session
            identity: Identity provider untuk lookup user dan update password
            lockout_manager: Sumber state lockout
            session_registry: Untuk invalidasi session setelah reset
            email_service: Notifier email
            policy: TTL token
        """
        self.db = db
        self.identity = identity
        self.policy = policy or get_security_policy()
        self.email_service = email_service or EmailService()
        self.lockout_manager = lockout_manager or AccountLockoutManager(
            db, email_service=self.email_service, policy=self.policy
        )
        self.session_registry = session_registry or SessionRegistry(db, policy=self.policy)
        self.security_events = SecurityEventService(db)

    async def request_reset(
        self,
        email: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> None:
        """
        Proses permintaan reset password.

        Tidak pernah memberi tahu caller apakah email terdaftar: semua cabang
        selesai tanpa exception dan response handler selalu sama.

        Args:
            email: Email yang meminta reset
            ip_address: IP peminta
            user_agent: User agent peminta
        """
        email = email.strip().lower()

        try:
            user = await self.identity.get_user_by_email(email)

            if user is None:
                await self.security_events.log_event(
                    event_type=SecurityEventType.PASSWORD_RESET_NONEXISTENT_USER,
                    severity=Severity.LOW,
                    description="Password reset requested for unknown email",
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"email": email},
                    commit=True
                )
                return

            user_id = user.u_id
            name = user.display_name

            lockout = await self.lockout_manager.check_lockout(user_id)
            if lockout is not None:
                await self.security_events.log_event(
                    event_type=SecurityEventType.PASSWORD_RESET_REQUEST_LOCKED_ACCOUNT,
                    severity=Severity.MEDIUM,
                    description="Password reset requested for locked account",
                    user_id=user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    commit=True
                )
                return

            plaintext = await self._issue_token(user_id, email, ip_address, user_agent)

        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Password reset request could not be processed")
            return

        self.email_service.dispatch(
            "send_password_reset_email",
            email=email,
            name=name,
            reset_token=plaintext,
            expires_minutes=int(self.policy.reset_token_ttl.total_seconds() // 60)
        )

    async def _issue_token(
        self,
        user_id: UUID,
        email: str,
        ip_address: Optional[str],
        user_agent: Optional[str]
    ) -> str:
        """
        Buat token baru dan invalidasi token lama milik user.

        Returns:
            Plaintext token (tidak disimpan)
        """
        plaintext = security.generate_reset_token()
        now = utcnow()

        await self.db.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.prt_user_id == user_id,
                PasswordResetToken.prt_is_valid == True  # noqa: E712
            )
            .values(prt_is_valid=False)
        )

        self.db.add(PasswordResetToken(
            prt_user_id=user_id,
            prt_token_hash=security.hash_token(plaintext),
            prt_expires_at=now + self.policy.reset_token_ttl,
            prt_is_valid=True,
            prt_requested_by_email=email,
            prt_ip_address=ip_address
        ))

        await self.security_events.log_event(
            event_type=SecurityEventType.PASSWORD_RESET_REQUESTED,
            severity=Severity.LOW,
            description="Password reset token issued",
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent
        )

        await self.db.commit()
        return plaintext

    async def _get_by_hash(self, token_hash: str) -> Optional[PasswordResetToken]:
        result = await self.db.execute(
            select(PasswordResetToken)
            .where(PasswordResetToken.prt_token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _check_token_state(self, record: PasswordResetToken, now: datetime) -> None:
        """
        Raise error yang sesuai untuk token yang tidak bisa dipakai.

        Token expired yang masih ditandai valid di-invalidate di sini.
        """
        if record.prt_used_at is not None:
            raise UsedTokenError()

        if record.is_expired(now):
            if record.prt_is_valid:
                record.prt_is_valid = False
                await self.db.commit()
            raise ExpiredTokenError()

        if not record.prt_is_valid:
            raise InvalidatedTokenError()

    async def verify_token(self, token: str) -> PasswordResetToken:
        """
        Verifikasi token reset tanpa memakainya.

        Args:
            token: Plaintext token

        Returns:
            PasswordResetToken yang valid

        Raises:
            InvalidTokenError: Token tidak dikenal
            UsedTokenError: Token sudah dipakai
            ExpiredTokenError: Token expired
            InvalidatedTokenError: Token sudah di-supersede
            LockoutError: Pemilik token sedang terkunci
        """
        record = await self._get_by_hash(security.hash_token(token))
        if record is None:
            raise InvalidTokenError()

        await self._check_token_state(record, utcnow())
        await self.lockout_manager.ensure_not_locked(record.prt_user_id)
        return record

    async def consume_token(
        self,
        token: str,
        new_password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> UUID:
        """
        Pakai token untuk mengganti password.

        Proses:
        1. Validasi ulang seperti verify_token
        2. UPDATE bersyarat: valid, belum dipakai, belum expired, user tidak terkunci
        3. Update password lewat identity provider
        4. Revoke semua session, lepas lockout, catat security event
        5. Commit, lalu jadwalkan email konfirmasi di background

        Args:
            token: Plaintext token
            new_password: Password baru
            ip_address: IP caller
            user_agent: User agent caller

        Returns:
            User ID pemilik token

        Raises:
            TokenError: Token tidak bisa dipakai
            LockoutError: Pemilik token sedang terkunci
            NotFoundError: User pemilik token sudah tidak ada
        """
        record = await self.verify_token(token)
        token_id = record.prt_id
        user_id = record.prt_user_id

        user = await self.identity.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(ResponseMessage.USER_NOT_FOUND, code="USER_NOT_FOUND")
        email = user.u_email
        name = user.display_name

        now = utcnow()
        active_lockout = exists().where(
            AccountLockout.lo_user_id == PasswordResetToken.prt_user_id,
            AccountLockout.lo_is_active == True,  # noqa: E712
            AccountLockout.lo_unlock_at > now
        )
        result = await self.db.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.prt_id == token_id,
                PasswordResetToken.prt_is_valid == True,  # noqa: E712
                PasswordResetToken.prt_used_at.is_(None),
                PasswordResetToken.prt_expires_at > now,
                ~active_lockout
            )
            .values(prt_used_at=now, prt_is_valid=False)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            await self.db.rollback()
            await self._raise_consumption_failure(token_id, user_id)

        try:
            await self.identity.update_password(user_id, new_password)
            revoked = await self.session_registry.revoke_all_sessions(
                user_id,
                reason=SessionEndReason.PASSWORD_RESET,
                ip_address=ip_address,
                commit=False
            )
            await self.lockout_manager.clear_lockout(
                user_id,
                UnlockMethod.PASSWORD_RESET,
                ip_address=ip_address,
                commit=False
            )
            await self.security_events.log_event(
                event_type=SecurityEventType.PASSWORD_RESET_COMPLETED,
                severity=Severity.MEDIUM,
                description="Password reset completed",
                user_id=user_id,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"sessions_revoked": revoked}
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        self.email_service.dispatch(
            "send_password_changed_email",
            email=email,
            name=name
        )
        return user_id

    async def _raise_consumption_failure(self, token_id: UUID, user_id: UUID) -> None:
        """Tentukan kenapa compare-and-set gagal dan raise error yang sesuai."""
        result = await self.db.execute(
            select(PasswordResetToken)
            .where(PasswordResetToken.prt_id == token_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise InvalidTokenError()

        await self._check_token_state(record, utcnow())

        lockout = await self.lockout_manager.check_lockout(user_id)
        if lockout is not None:
            raise LockoutError(unlock_at=lockout.lo_unlock_at)

        raise UsedTokenError()
