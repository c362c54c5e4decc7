"""
Account lockout service untuk WellAuth.

State machine ``Unlocked -> Locked -> Unlocked``. Lockout dibuat saat jumlah
gagal login dalam window mencapai threshold, dan dilepas karena expiry
(dicek lazy saat dipakai), reset password, atau unlock manual oleh operator.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from wellauth.core.config import SecurityPolicy, get_security_policy
from wellauth.core.constants import (
    SecurityEventType, Severity, UnlockMethod, ResponseMessage
)
from wellauth.core.exceptions import LockoutError, NotFoundError
from wellauth.db.base import utcnow
from wellauth.models.lockout import AccountLockout
from wellauth.models.login_attempt import LoginAttempt
from wellauth.services.email import EmailService
from wellauth.services.security_log import SecurityEventService

logger = logging.getLogger(__name__)


class AccountLockoutManager:
    """
    Service class untuk account lockout operations.
    """

    def __init__(
        self,
        db: AsyncSession,
        email_service: Optional[EmailService] = None,
        policy: Optional[SecurityPolicy] = None
    ):
        """
        Initialize lockout manager.

        Args:
            db: Database session
            email_service: Notifier untuk email akun terkunci
            policy: Threshold dan durasi lockout
        """
        self.db = db
        self.email_service = email_service or EmailService()
        self.policy = policy or get_security_policy()
        self.security_events = SecurityEventService(db)

    async def get_active_lockout(self, user_id: UUID) -> Optional[AccountLockout]:
        """
        Ambil baris lockout aktif apa adanya (tanpa cek expiry).

        Selalu dibaca ulang dari database.
        """
        result = await self.db.execute(
            select(AccountLockout)
            .where(
                AccountLockout.lo_user_id == user_id,
                AccountLockout.lo_is_active == True  # noqa: E712
            )
            .order_by(AccountLockout.lo_unlock_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def check_lockout(self, user_id: UUID, now: Optional[datetime] = None) -> Optional[AccountLockout]:
        """
        Ambil lockout yang masih memblokir user.

        Lockout aktif yang ``unlock_at``-nya sudah lewat ditutup di sini
        dengan unlock_method ``expired``.

        Args:
            user_id: User ID
            now: Waktu evaluasi

        Returns:
            AccountLockout yang berlaku atau None
        """
        now = now or utcnow()
        lockout = await self.get_active_lockout(user_id)
        if lockout is None:
            return None

        if lockout.is_expired(now):
            lockout.release(UnlockMethod.EXPIRED, now=now)
            await self.db.commit()
            logger.info(f"Lockout {lockout.lo_id} for user {user_id} expired")
            return None

        return lockout

    async def ensure_not_locked(self, user_id: UUID) -> None:
        """
        Raises:
            LockoutError: Jika user sedang terkunci
        """
        lockout = await self.check_lockout(user_id)
        if lockout is not None:
            raise LockoutError(unlock_at=lockout.lo_unlock_at)

    async def last_unlocked_at(self, user_id: UUID) -> Optional[datetime]:
        """Waktu lockout terakhir dilepas, None jika belum pernah."""
        result = await self.db.execute(
            select(func.max(AccountLockout.lo_unlocked_at))
            .where(AccountLockout.lo_user_id == user_id)
        )
        return result.scalar()

    async def evaluate_failures(
        self,
        user_id: UUID,
        email: str,
        name: str,
        failed_attempts: int,
        ip_address: Optional[str] = None,
        triggering_attempt: Optional[LoginAttempt] = None
    ) -> Optional[AccountLockout]:
        """
        Kunci akun jika jumlah gagal login mencapai threshold.

        Returns:
            AccountLockout jika akun (sudah) terkunci, None jika belum
        """
        if failed_attempts < self.policy.max_failed_attempts:
            return None

        return await self.lock_account(
            user_id=user_id,
            email=email,
            name=name,
            failed_attempts=failed_attempts,
            ip_address=ip_address,
            triggering_attempt=triggering_attempt
        )

    async def lock_account(
        self,
        user_id: UUID,
        email: str,
        name: str,
        failed_attempts: int,
        ip_address: Optional[str] = None,
        triggering_attempt: Optional[LoginAttempt] = None
    ) -> AccountLockout:
        """
        Buat lockout baru, atau kembalikan lockout yang sudah aktif.

        Insert yang kalah race dengan request lain ditolak partial unique
        index; lockout pemenang yang dikembalikan.

        Args:
            user_id: User yang dikunci
            email: Email user
            name: Nama untuk notifikasi
            failed_attempts: Jumlah gagal login dalam window
            ip_address: IP attempt yang memicu
            triggering_attempt: Login attempt yang memicu lockout

        Returns:
            AccountLockout yang aktif
        """
        existing = await self.check_lockout(user_id)
        if existing is not None:
            return existing

        now = utcnow()
        window_minutes = self.policy.failure_window_minutes
        reason = f"{self.policy.max_failed_attempts} failed login attempts in {window_minutes} minutes"

        lockout = AccountLockout(
            lo_user_id=user_id,
            lo_email=email,
            lo_unlock_at=now + self.policy.lockout_duration,
            lo_reason=reason,
            lo_failed_attempts_count=failed_attempts,
            lo_is_active=True
        )
        self.db.add(lockout)

        if triggering_attempt is not None:
            triggering_attempt.la_triggered_lockout = True

        await self.security_events.log_event(
            event_type=SecurityEventType.ACCOUNT_LOCKED,
            severity=Severity.HIGH,
            description=f"Account locked after {failed_attempts} failed login attempts",
            user_id=user_id,
            ip_address=ip_address,
            details={
                "failed_attempts": failed_attempts,
                "lockout_duration_minutes": int(self.policy.lockout_duration.total_seconds() // 60)
            }
        )

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            winner = await self.get_active_lockout(user_id)
            if winner is None:
                raise
            logger.info(f"Concurrent lockout for user {user_id} already created")
            return winner

        self.email_service.dispatch(
            "send_account_locked_email",
            email=email,
            name=name,
            unlock_at=lockout.lo_unlock_at,
            reason=reason
        )
        return lockout

    async def clear_lockout(
        self,
        user_id: UUID,
        method: UnlockMethod,
        approved_by: Optional[UUID] = None,
        ip_address: Optional[str] = None,
        commit: bool = True
    ) -> int:
        """
        Lepas semua lockout aktif milik user.

        Args:
            user_id: User ID
            method: Cara lockout dilepas
            approved_by: Operator (untuk unlock manual)
            ip_address: IP caller
            commit: Commit langsung

        Returns:
            Jumlah lockout yang dilepas
        """
        result = await self.db.execute(
            select(AccountLockout)
            .where(
                AccountLockout.lo_user_id == user_id,
                AccountLockout.lo_is_active == True  # noqa: E712
            )
            .execution_options(populate_existing=True)
        )
        lockouts = list(result.scalars().all())
        if not lockouts:
            return 0

        now = utcnow()
        for lockout in lockouts:
            lockout.release(method, approved_by=approved_by, now=now)

        await self.security_events.log_event(
            event_type=SecurityEventType.ACCOUNT_UNLOCKED,
            severity=Severity.MEDIUM,
            description=f"Account unlocked ({method.value})",
            user_id=user_id,
            ip_address=ip_address,
            details={
                "unlock_method": method.value,
                "approved_by": str(approved_by) if approved_by else None
            }
        )

        if commit:
            await self.db.commit()
        return len(lockouts)

    async def unlock_account(
        self,
        user_id: UUID,
        approved_by: UUID,
        ip_address: Optional[str] = None
    ) -> AccountLockout:
        """
        Unlock manual oleh operator.

        Raises:
            NotFoundError: Tidak ada lockout yang berlaku
        """
        lockout = await self.check_lockout(user_id)
        if lockout is None:
            raise NotFoundError(ResponseMessage.LOCKOUT_NOT_FOUND, code="LOCKOUT_NOT_FOUND")

        await self.clear_lockout(
            user_id,
            UnlockMethod.MANUAL,
            approved_by=approved_by,
            ip_address=ip_address
        )
        return lockout
