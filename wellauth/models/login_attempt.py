"""
Login attempt model untuk WellAuth.
Melacak semua percobaan login untuk security monitoring.
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import Column, String, Boolean, ForeignKey, Index, Uuid

from wellauth.db.base import Base, UTCDateTime, utcnow


class LoginAttempt(Base):
    """
    Login attempt model untuk tracking semua login attempts.

    Append-only: baris tidak pernah diubah kecuali flag
    ``la_triggered_lockout`` saat lockout terpicu oleh attempt ini.

    Attributes:
        la_id: Login attempt ID (UUID)
        la_user_id: User ID (nullable jika email tidak ditemukan)
        la_email: Email yang digunakan untuk login
        la_ip_address: IP address dari login attempt
        la_user_agent: User agent string
        la_success: Whether login was successful
        la_failure_reason: Reason for failure (if failed)
        la_triggered_lockout: Attempt ini memicu lockout
        la_attempted_at: Timestamp of attempt
    """

    __tablename__ = "login_attempts"

    la_id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False
    )

    # Foreign key (nullable)
    la_user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.u_id", ondelete="CASCADE"),
        nullable=True
    )

    # Login info
    la_email = Column(String(255), nullable=False)
    la_ip_address = Column(String(45), nullable=True)
    la_user_agent = Column(String(500), nullable=True)

    # Result
    la_success = Column(Boolean, nullable=False)
    la_failure_reason = Column(String(200), nullable=True)
    la_triggered_lockout = Column(Boolean, nullable=False, default=False)

    la_attempted_at = Column(
        UTCDateTime(),
        default=utcnow,
        nullable=False
    )

    __table_args__ = (
        Index('idx_login_attempts_user_attempted', 'la_user_id', 'la_success', 'la_attempted_at'),
        Index('idx_login_attempts_email', 'la_email'),
        Index('idx_login_attempts_ip_address', 'la_ip_address'),
    )

    @classmethod
    def create(
        cls,
        email: str,
        success: bool,
        user_id: Optional[uuid.UUID] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        failure_reason: Optional[str] = None,
        attempted_at: Optional[datetime] = None
    ) -> "LoginAttempt":
        """
        Buat record login attempt.

        Args:
            email: Email yang dicoba
            success: Hasil login
            user_id: User ID jika email dikenal
            ip_address: IP address client
            user_agent: User agent client
            failure_reason: Alasan gagal (diabaikan jika success)
            attempted_at: Waktu attempt, default sekarang

        Returns:
            LoginAttempt instance (belum di-add ke session)
        """
        return cls(
            la_email=email,
            la_success=success,
            la_user_id=user_id,
            la_ip_address=ip_address,
            la_user_agent=user_agent,
            la_failure_reason=None if success else failure_reason,
            la_triggered_lockout=False,
            la_attempted_at=attempted_at or utcnow()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "la_id": str(self.la_id),
            "la_user_id": str(self.la_user_id) if self.la_user_id else None,
            "la_email": self.la_email,
            "la_ip_address": self.la_ip_address,
            "la_success": self.la_success,
            "la_failure_reason": self.la_failure_reason,
            "la_triggered_lockout": self.la_triggered_lockout,
            "la_attempted_at": self.la_attempted_at.isoformat() if self.la_attempted_at else None,
        }

    def __repr__(self) -> str:
        status = "SUCCESS" if self.la_success else "FAILED"
        return f"<LoginAttempt(id={self.la_id}, email={self.la_email}, status={status})>"
