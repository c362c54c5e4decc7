"""
Session registry service untuk WellAuth.
Membuat, menampilkan, dan me-revoke session serta menjaga trust device fingerprint.
"""

import logging
from datetime import datetime
from typing import Optional, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from wellauth.core.config import SecurityPolicy, get_security_policy
from wellauth.core.constants import (
    LoginMethod, SessionEndReason, SecurityEventType, Severity, ResponseMessage
)
from wellauth.core.exceptions import NotFoundError
from wellauth.core.security import security
from wellauth.db.base import utcnow
from wellauth.models.device import DeviceFingerprint
from wellauth.models.session import UserSession
from wellauth.services.security_log import SecurityEventService

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Service class untuk session management.
    """

    def __init__(self, db: AsyncSession, policy: Optional[SecurityPolicy] = None):
        """
        Initialize session registry.

        Args:
            db: Database session
            policy: Session TTL dan device trust threshold
        """
        self.db = db
        self.policy = policy or get_security_policy()
        self.security_events = SecurityEventService(db)

    async def list_active_sessions(self, user_id: UUID, now: Optional[datetime] = None) -> List[UserSession]:
        """
        Ambil session aktif user, paling baru aktif lebih dulu.

        Args:
            user_id: User ID
            now: Waktu evaluasi expiry

        Returns:
            List of active sessions
        """
        now = now or utcnow()
        result = await self.db.execute(
            select(UserSession)
            .where(
                UserSession.us_user_id == user_id,
                UserSession.us_is_active == True,  # noqa: E712
                UserSession.us_expires_at > now
            )
            .order_by(UserSession.us_last_activity_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def create_session(
        self,
        user_id: UUID,
        device_fingerprint: Optional[str] = None,
        login_method: LoginMethod = LoginMethod.EMAIL,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> UserSession:
        """
        Buat session baru dan update device fingerprint.

        Args:
            user_id: Pemilik session
            device_fingerprint: Fingerprint mentah dari client (hanya hash yang disimpan)
            login_method: Metode login
            ip_address: IP client saat session dibuat
            user_agent: User agent client

        Returns:
            UserSession yang dibuat
        """
        fingerprint_hash = security.hash_token(device_fingerprint) if device_fingerprint else None

        try:
            return await self._create_session_once(
                user_id, fingerprint_hash, login_method, ip_address, user_agent
            )
        except IntegrityError:
            # Device yang sama didaftarkan request paralel; ulangi sebagai update
            await self.db.rollback()
            logger.info(f"Retrying session creation for user {user_id} after device insert conflict")
            return await self._create_session_once(
                user_id, fingerprint_hash, login_method, ip_address, user_agent
            )

    async def _create_session_once(
        self,
        user_id: UUID,
        fingerprint_hash: Optional[str],
        login_method: LoginMethod,
        ip_address: Optional[str],
        user_agent: Optional[str]
    ) -> UserSession:
        now = utcnow()
        session = UserSession(
            us_user_id=user_id,
            us_session_token_hash=security.hash_token(security.generate_secure_token()),
            us_device_fingerprint=fingerprint_hash,
            us_ip_address=ip_address,
            us_user_agent=user_agent,
            us_login_method=LoginMethod(login_method).value,
            us_is_active=True,
            us_last_activity_at=now,
            us_expires_at=now + self.policy.session_ttl
        )
        self.db.add(session)

        if fingerprint_hash:
            await self._track_device(user_id, fingerprint_hash, ip_address, user_agent, now)

        await self.db.commit()
        return session

    async def get_device(self, user_id: UUID, fingerprint_hash: str) -> Optional[DeviceFingerprint]:
        result = await self.db.execute(
            select(DeviceFingerprint)
            .where(
                DeviceFingerprint.df_user_id == user_id,
                DeviceFingerprint.df_fingerprint_hash == fingerprint_hash
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _track_device(
        self,
        user_id: UUID,
        fingerprint_hash: str,
        ip_address: Optional[str],
        user_agent: Optional[str],
        now: datetime
    ) -> DeviceFingerprint:
        """
        Update atau insert device fingerprint.

        Trust hanya pernah berubah dari False ke True.
        """
        device = await self.get_device(user_id, fingerprint_hash)

        if device is not None:
            was_trusted = device.df_is_trusted
            await self.db.execute(
                update(DeviceFingerprint)
                .where(DeviceFingerprint.df_id == device.df_id)
                .values(
                    df_login_count=DeviceFingerprint.df_login_count + 1,
                    df_last_seen_at=now
                )
                .execution_options(synchronize_session=False)
            )
            await self.db.refresh(device)

            if not was_trusted and device.df_login_count >= self.policy.device_trust_threshold:
                device.df_is_trusted = True
                await self.security_events.log_event(
                    event_type=SecurityEventType.DEVICE_TRUSTED,
                    severity=Severity.LOW,
                    description=f"Device trusted after {device.df_login_count} logins",
                    user_id=user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"login_count": device.df_login_count}
                )
            return device

        device = DeviceFingerprint(
            df_user_id=user_id,
            df_fingerprint_hash=fingerprint_hash,
            df_first_seen_ip=ip_address,
            df_last_seen_at=now,
            df_login_count=1,
            df_is_trusted=1 >= self.policy.device_trust_threshold
        )
        self.db.add(device)
        # Flush agar konflik unique constraint muncul di sini
        await self.db.flush()

        await self.security_events.log_event(
            event_type=SecurityEventType.NEW_DEVICE_LOGIN,
            severity=Severity.LOW,
            description="Login from a new device",
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent
        )
        return device

    async def revoke_session(
        self,
        session_id: UUID,
        user_id: UUID,
        ip_address: Optional[str] = None
    ) -> UserSession:
        """
        Revoke satu session milik user.

        Args:
            session_id: Session yang di-revoke
            user_id: User yang meminta revoke
            ip_address: IP caller

        Returns:
            UserSession yang sudah nonaktif

        Raises:
            NotFoundError: Session tidak ada atau bukan milik user
        """
        result = await self.db.execute(
            select(UserSession)
            .where(
                UserSession.us_id == session_id,
                UserSession.us_user_id == user_id
            )
            .execution_options(populate_existing=True)
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise NotFoundError(ResponseMessage.SESSION_NOT_FOUND, code="SESSION_NOT_FOUND")

        if not session.us_is_active:
            return session

        session.terminate(SessionEndReason.USER_REVOKED.value)
        await self.security_events.log_event(
            event_type=SecurityEventType.SESSION_REVOKED,
            severity=Severity.LOW,
            description="Session revoked by user",
            user_id=user_id,
            ip_address=ip_address,
            details={"session_id": str(session_id)}
        )
        await self.db.commit()
        return session

    async def revoke_all_sessions(
        self,
        user_id: UUID,
        reason: SessionEndReason = SessionEndReason.USER_REVOKED_ALL,
        ip_address: Optional[str] = None,
        commit: bool = True
    ) -> int:
        """
        Nonaktifkan semua session aktif user dalam satu UPDATE.

        Args:
            user_id: User ID
            reason: Alasan revoke
            ip_address: IP caller
            commit: Commit langsung

        Returns:
            Jumlah session yang dinonaktifkan
        """
        result = await self.db.execute(
            update(UserSession)
            .where(
                UserSession.us_user_id == user_id,
                UserSession.us_is_active == True  # noqa: E712
            )
            .values(
                us_is_active=False,
                us_revoked_at=utcnow(),
                us_revoke_reason=reason.value
            )
        )
        revoked = result.rowcount or 0

        if reason == SessionEndReason.USER_REVOKED_ALL:
            await self.security_events.log_event(
                event_type=SecurityEventType.SESSIONS_REVOKED_ALL,
                severity=Severity.MEDIUM,
                description=f"All sessions revoked ({revoked})",
                user_id=user_id,
                ip_address=ip_address,
                details={"revoked_count": revoked}
            )

        if commit:
            await self.db.commit()
        return revoked
