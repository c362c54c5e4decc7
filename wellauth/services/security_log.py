"""
Security event service untuk WellAuth.
Mencatat event keamanan ke database dan mirror ke logger ``wellauth.security``.
"""

import logging
from typing import Optional, Dict, Any, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from wellauth.core.constants import SecurityEventType, Severity
from wellauth.models.security_log import SecurityLog

security_logger = logging.getLogger("wellauth.security")

_SEVERITY_LEVELS = {
    Severity.LOW: logging.INFO,
    Severity.MEDIUM: logging.INFO,
    Severity.HIGH: logging.WARNING,
    Severity.CRITICAL: logging.ERROR,
}


class SecurityEventService:
    """
    Service class untuk security event logging.

    Event ditambahkan ke session yang sama dengan transisi state yang
    dijelaskannya; commit dilakukan oleh caller kecuali ``commit=True``.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize security event service.

        Args:
            db: Database session
        """
        self.db = db

    async def log_event(
        self,
        event_type: SecurityEventType,
        severity: Severity,
        description: str,
        user_id: Optional[UUID] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        commit: bool = False
    ) -> SecurityLog:
        """
        Catat security event.

        Args:
            event_type: Tipe event
            severity: Tingkat keparahan
            description: Deskripsi singkat
            user_id: User terkait
            ip_address: IP address
            user_agent: User agent
            details: Detail tambahan
            commit: Commit langsung setelah insert

        Returns:
            SecurityLog yang dibuat
        """
        entry = SecurityLog(
            sl_user_id=user_id,
            sl_event_type=event_type.value,
            sl_severity=severity.value,
            sl_description=description,
            sl_ip_address=ip_address,
            sl_user_agent=user_agent,
            sl_details=details or {}
        )
        self.db.add(entry)

        if commit:
            await self.db.commit()

        security_logger.log(
            _SEVERITY_LEVELS[severity],
            f"{event_type.value}: {description} (user_id={user_id}, ip={ip_address})"
        )
        return entry

    async def get_user_events(
        self,
        user_id: UUID,
        event_type: Optional[SecurityEventType] = None,
        limit: int = 50
    ) -> List[SecurityLog]:
        """
        Ambil event terbaru untuk user.

        Args:
            user_id: User ID
            event_type: Filter tipe event
            limit: Jumlah maksimal

        Returns:
            List SecurityLog, terbaru lebih dulu
        """
        query = select(SecurityLog).where(SecurityLog.sl_user_id == user_id)
        if event_type is not None:
            query = query.where(SecurityLog.sl_event_type == event_type.value)
        query = query.order_by(SecurityLog.sl_created_at.desc()).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())
