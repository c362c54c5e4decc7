"""
Account lockout model untuk WellAuth.
Satu baris per periode lockout; histori dipertahankan untuk audit.
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Index, Uuid, text

from wellauth.db.base import BaseModel, UTCDateTime, utcnow
from wellauth.core.constants import UnlockMethod


class AccountLockout(BaseModel):
    """
    Account lockout model.

    Paling banyak satu baris aktif per user, dijaga partial unique index
    ``uq_account_lockouts_active_user`` di database.

    Attributes:
        lo_id: Lockout ID (UUID)
        lo_user_id: User yang dikunci
        lo_email: Email user saat dikunci
        lo_unlock_at: Waktu lockout berakhir otomatis
        lo_reason: Alasan lockout
        lo_failed_attempts_count: Jumlah gagal login yang memicu lockout
        lo_is_active: Lockout masih berlaku
        lo_approved_by: Operator yang membuka lockout secara manual
        lo_unlocked_at: Waktu lockout dilepas
        lo_unlock_method: Cara lockout dilepas
    """

    __tablename__ = "account_lockouts"

    lo_id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False
    )
    lo_user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.u_id", ondelete="CASCADE"),
        nullable=False
    )
    lo_email = Column(String(255), nullable=False)
    lo_unlock_at = Column(UTCDateTime(), nullable=False)
    lo_reason = Column(String(255), nullable=False)
    lo_failed_attempts_count = Column(Integer, nullable=False, default=0)
    lo_is_active = Column(Boolean, nullable=False, default=True)
    lo_approved_by = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.u_id", ondelete="SET NULL"),
        nullable=True
    )
    lo_unlocked_at = Column(UTCDateTime(), nullable=True)
    lo_unlock_method = Column(String(50), nullable=True)

    __table_args__ = (
        Index(
            'uq_account_lockouts_active_user',
            'lo_user_id',
            unique=True,
            postgresql_where=text("lo_is_active"),
            sqlite_where=text("lo_is_active = 1")
        ),
        Index('idx_account_lockouts_user_unlocked', 'lo_user_id', 'lo_unlocked_at'),
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True jika unlock_at sudah lewat."""
        return (now or utcnow()) >= self.lo_unlock_at

    def release(
        self,
        method: UnlockMethod,
        approved_by: Optional[uuid.UUID] = None,
        now: Optional[datetime] = None
    ) -> None:
        """
        Lepas lockout.

        Args:
            method: Cara lockout dilepas
            approved_by: Operator yang menyetujui (manual unlock)
            now: Waktu pelepasan
        """
        self.lo_is_active = False
        self.lo_unlocked_at = now or utcnow()
        self.lo_unlock_method = method.value
        if approved_by is not None:
            self.lo_approved_by = approved_by

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lo_id": str(self.lo_id),
            "lo_user_id": str(self.lo_user_id),
            "lo_unlock_at": self.lo_unlock_at.isoformat(),
            "lo_reason": self.lo_reason,
            "lo_failed_attempts_count": self.lo_failed_attempts_count,
            "lo_is_active": self.lo_is_active,
            "lo_unlocked_at": self.lo_unlocked_at.isoformat() if self.lo_unlocked_at else None,
            "lo_unlock_method": self.lo_unlock_method,
        }

    def __repr__(self) -> str:
        return (
            f"<AccountLockout(id={self.lo_id}, user_id={self.lo_user_id}, "
            f"active={self.lo_is_active}, unlock_at={self.lo_unlock_at})>"
        )
