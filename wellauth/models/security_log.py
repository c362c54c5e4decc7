"""
Security log model untuk WellAuth.
Mencatat event keamanan (lockout, reset password, device baru, revoke session).
"""

import uuid
from typing import Dict, Any

from sqlalchemy import Column, String, ForeignKey, JSON, Index, Uuid

from wellauth.db.base import Base, UTCDateTime, utcnow


class SecurityLog(Base):
    """
    Security log model.

    Insert-only. Log tetap ada meskipun user dihapus (SET NULL).

    Attributes:
        sl_id: Log ID (UUID)
        sl_user_id: User terkait (nullable)
        sl_event_type: Tipe event
        sl_severity: low, medium, high, critical
        sl_description: Deskripsi singkat
        sl_ip_address: IP address saat event
        sl_user_agent: User agent saat event
        sl_details: Detail tambahan (JSON)
        sl_created_at: Timestamp event
    """

    __tablename__ = "security_logs"

    sl_id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False
    )
    sl_user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.u_id", ondelete="SET NULL"),
        nullable=True
    )
    sl_event_type = Column(String(100), nullable=False)
    sl_severity = Column(String(20), nullable=False)
    sl_description = Column(String(500), nullable=False)
    sl_ip_address = Column(String(45), nullable=True)
    sl_user_agent = Column(String(500), nullable=True)
    sl_details = Column(JSON, nullable=True, default=dict)
    sl_created_at = Column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_security_logs_user_id', 'sl_user_id'),
        Index('idx_security_logs_event_type', 'sl_event_type'),
        Index('idx_security_logs_created_at', 'sl_created_at'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.dict()

    def __repr__(self) -> str:
        return f"<SecurityLog(id={self.sl_id}, event={self.sl_event_type}, severity={self.sl_severity})>"
