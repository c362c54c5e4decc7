"""
Login attempt tracking service untuk WellAuth.
Mencatat setiap percobaan login dan meneruskan jumlah gagal login ke lockout manager.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError

from wellauth.core.config import SecurityPolicy, get_security_policy
from wellauth.core.constants import UnlockMethod, ResponseMessage, DefaultValue
from wellauth.db.base import utcnow
from wellauth.models.login_attempt import LoginAttempt
from wellauth.services.identity import IdentityProvider
from wellauth.services.lockout import AccountLockoutManager

logger = logging.getLogger(__name__)


@dataclass
class LoginAttemptOutcome:
    """Hasil pencatatan login attempt."""
    locked: bool
    message: str
    unlock_at: Optional[datetime] = None
    remaining_attempts: Optional[int] = None
    warning: Optional[str] = None


class LoginAttemptTracker:
    """
    Service class untuk login attempt tracking.
    """

    def __init__(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        lockout_manager: Optional[AccountLockoutManager] = None,
        policy: Optional[SecurityPolicy] = None
    ):
        """
        Initialize tracker.

        Args:
            db: Database session
            identity: Identity provider untuk lookup user dari email
            lockout_manager: Lockout manager
            policy: Threshold dan window gagal login
        """
        self.db = db
        self.identity = identity
        self.policy = policy or get_security_policy()
        self.lockout_manager = lockout_manager or AccountLockoutManager(db, policy=self.policy)

    async def record(
        self,
        email: str,
        success: bool,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        failure_reason: Optional[str] = None
    ) -> LoginAttemptOutcome:
        """
        Catat login attempt dan terapkan efeknya ke lockout.

        Proses:
        1. Cek lockout (lockout expired ditutup sebelum attempt disimpan)
        2. Simpan attempt (gagal simpan hanya di-log)
        3. Email tidak dikenal: selesai
        4. Akun sedang terkunci: kembalikan unlock_at tanpa proses lain
        5. Sukses: lepas lockout aktif
        6. Gagal: hitung gagal login dalam window, kunci jika mencapai threshold

        Args:
            email: Email yang dipakai login
            success: Hasil login dari identity provider
            ip_address: IP client
            user_agent: User agent client
            failure_reason: Alasan gagal

        Returns:
            LoginAttemptOutcome
        """
        email = email.strip().lower()
        user = await self.identity.get_user_by_email(email)

        user_id = user.u_id if user else None
        name = user.display_name if user else None

        # Lockout expired harus ditutup sebelum attempt ini tercatat agar ikut dihitung
        lockout = await self.lockout_manager.check_lockout(user_id) if user_id else None
        locked_until = lockout.lo_unlock_at if lockout is not None else None

        attempt = await self._persist_attempt(
            LoginAttempt.create(
                email=email,
                success=success,
                user_id=user_id,
                ip_address=ip_address,
                user_agent=user_agent,
                failure_reason=failure_reason
            )
        )

        if user_id is None:
            return LoginAttemptOutcome(locked=False, message=ResponseMessage.LOGIN_RECORDED)

        if locked_until is not None:
            return LoginAttemptOutcome(
                locked=True,
                message=ResponseMessage.ACCOUNT_STILL_LOCKED,
                unlock_at=locked_until,
                remaining_attempts=0
            )

        if success:
            await self.lockout_manager.clear_lockout(
                user_id, UnlockMethod.AUTOMATIC, ip_address=ip_address
            )
            return LoginAttemptOutcome(locked=False, message=ResponseMessage.LOGIN_RECORDED)

        failures = await self.count_recent_failures(user_id)
        lockout = await self.lockout_manager.evaluate_failures(
            user_id=user_id,
            email=email,
            name=name,
            failed_attempts=failures,
            ip_address=ip_address,
            triggering_attempt=attempt
        )
        if lockout is not None:
            return LoginAttemptOutcome(
                locked=True,
                message=ResponseMessage.ACCOUNT_LOCKED,
                unlock_at=lockout.lo_unlock_at,
                remaining_attempts=0
            )

        remaining = max(0, self.policy.max_failed_attempts - failures)
        warning = None
        if remaining <= DefaultValue.LOW_ATTEMPTS_WARNING_THRESHOLD:
            warning = ResponseMessage.LOW_ATTEMPTS_WARNING.format(remaining=remaining)

        return LoginAttemptOutcome(
            locked=False,
            message=ResponseMessage.LOGIN_RECORDED,
            remaining_attempts=remaining,
            warning=warning
        )

    async def count_recent_failures(
        self,
        user_id: UUID,
        window_minutes: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> int:
        """
        Hitung gagal login dalam trailing window.

        Gagal login sebelum lockout terakhir dilepas tidak dihitung.

        Args:
            user_id: User ID
            window_minutes: Panjang window, default dari policy
            now: Waktu evaluasi

        Returns:
            Jumlah gagal login
        """
        now = now or utcnow()
        window = (
            timedelta(minutes=window_minutes)
            if window_minutes is not None
            else self.policy.failure_window
        )
        since = now - window

        last_unlock = await self.lockout_manager.last_unlocked_at(user_id)
        if last_unlock is not None and last_unlock > since:
            since = last_unlock

        result = await self.db.execute(
            select(func.count(LoginAttempt.la_id)).where(
                LoginAttempt.la_user_id == user_id,
                LoginAttempt.la_success == False,  # noqa: E712
                LoginAttempt.la_attempted_at > since
            )
        )
        return result.scalar() or 0

    async def _persist_attempt(self, attempt: LoginAttempt) -> Optional[LoginAttempt]:
        email = attempt.la_email
        self.db.add(attempt)
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Failed to record login attempt for {email}")
            return None
        return attempt
