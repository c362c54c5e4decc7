"""
Password reset token model untuk WellAuth.
Hanya hash token yang disimpan; plaintext dikirim sekali lewat email.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, Boolean, ForeignKey, Index, Uuid

from wellauth.db.base import BaseModel, UTCDateTime, utcnow


class PasswordResetToken(BaseModel):
    """
    Password reset token model.

    Attributes:
        prt_id: Token ID (UUID)
        prt_user_id: Pemilik token
        prt_token_hash: SHA-256 hash dari token (unique)
        prt_expires_at: Waktu kedaluwarsa
        prt_is_valid: False jika di-supersede, dipakai, atau expired
        prt_used_at: Waktu token dipakai (di-set paling banyak sekali)
        prt_requested_by_email: Email yang meminta reset
        prt_ip_address: IP address peminta
    """

    __tablename__ = "password_reset_tokens"

    prt_id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False
    )
    prt_user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.u_id", ondelete="CASCADE"),
        nullable=False
    )
    prt_token_hash = Column(String(64), nullable=False, unique=True)
    prt_expires_at = Column(UTCDateTime(), nullable=False)
    prt_is_valid = Column(Boolean, nullable=False, default=True)
    prt_used_at = Column(UTCDateTime(), nullable=True)
    prt_requested_by_email = Column(String(255), nullable=False)
    prt_ip_address = Column(String(45), nullable=True)

    __table_args__ = (
        Index('idx_password_reset_tokens_user_valid', 'prt_user_id', 'prt_is_valid'),
        Index('idx_password_reset_tokens_expires_at', 'prt_expires_at'),
    )

    @property
    def is_used(self) -> bool:
        return self.prt_used_at is not None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if token is expired."""
        return (now or utcnow()) >= self.prt_expires_at

    def __repr__(self) -> str:
        return (
            f"<PasswordResetToken(id={self.prt_id}, user_id={self.prt_user_id}, "
            f"valid={self.prt_is_valid}, used={self.is_used})>"
        )
