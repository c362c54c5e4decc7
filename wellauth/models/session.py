"""
User session model untuk WellAuth.
Session tidak pernah dihapus; revoke hanya menonaktifkan baris (retensi audit).
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import Column, String, Boolean, ForeignKey, Index, Uuid

from wellauth.db.base import BaseModel, UTCDateTime, utcnow
from wellauth.core.constants import LoginMethod


class UserSession(BaseModel):
    """
    User session model untuk tracking active sessions.

    Attributes:
        us_id: Session ID (UUID)
        us_user_id: User ID yang memiliki session
        us_session_token_hash: Hash dari session token
        us_device_fingerprint: Hash fingerprint device (opsional)
        us_ip_address: IP address saat session dibuat
        us_user_agent: User agent saat session dibuat
        us_login_method: Metode login
        us_is_active: Whether session is still active
        us_last_activity_at: Last activity timestamp
        us_expires_at: Session expiration timestamp
        us_revoked_at: Waktu session dinonaktifkan
        us_revoke_reason: Alasan session dinonaktifkan
    """

    __tablename__ = "user_sessions"

    us_id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False
    )
    us_user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.u_id", ondelete="CASCADE"),
        nullable=False
    )
    us_session_token_hash = Column(String(64), nullable=False, unique=True)
    us_device_fingerprint = Column(String(64), nullable=True)
    us_ip_address = Column(String(45), nullable=True)
    us_user_agent = Column(String(500), nullable=True)
    us_login_method = Column(String(20), nullable=False, default=LoginMethod.EMAIL.value)
    us_is_active = Column(Boolean, nullable=False, default=True)
    us_last_activity_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    us_expires_at = Column(UTCDateTime(), nullable=False)
    us_revoked_at = Column(UTCDateTime(), nullable=True)
    us_revoke_reason = Column(String(50), nullable=True)

    __table_args__ = (
        Index('idx_user_sessions_user_active', 'us_user_id', 'us_is_active'),
        Index('idx_user_sessions_last_activity', 'us_last_activity_at'),
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if session is expired."""
        return (now or utcnow()) >= self.us_expires_at

    def terminate(self, reason: str, now: Optional[datetime] = None) -> None:
        """
        Nonaktifkan session.

        Args:
            reason: Alasan session diakhiri
            now: Waktu revoke
        """
        self.us_is_active = False
        self.us_revoked_at = now or utcnow()
        self.us_revoke_reason = reason

    def to_dict(self) -> Dict[str, Any]:
        return {
            "us_id": str(self.us_id),
            "us_user_id": str(self.us_user_id),
            "us_ip_address": self.us_ip_address,
            "us_login_method": self.us_login_method,
            "us_is_active": self.us_is_active,
            "us_last_activity_at": self.us_last_activity_at.isoformat() if self.us_last_activity_at else None,
            "us_expires_at": self.us_expires_at.isoformat() if self.us_expires_at else None,
        }

    def __repr__(self) -> str:
        return f"<UserSession(id={self.us_id}, user_id={self.us_user_id}, active={self.us_is_active})>"
