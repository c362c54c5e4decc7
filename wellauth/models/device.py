"""
Device fingerprint model untuk WellAuth.
Mengenali device yang kembali tanpa menyimpan identifier mentah.
"""

import uuid

from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Index, Uuid, UniqueConstraint

from wellauth.db.base import BaseModel, UTCDateTime, utcnow


class DeviceFingerprint(BaseModel):
    """
    Device fingerprint model.

    Trust bersifat monoton: ``df_is_trusted`` hanya berubah dari False ke True.

    Attributes:
        df_id: Record ID (UUID)
        df_user_id: User pemilik device
        df_fingerprint_hash: SHA-256 hash dari fingerprint client
        df_first_seen_ip: IP saat device pertama kali terlihat
        df_last_seen_at: Waktu login terakhir dari device
        df_login_count: Jumlah login dari device
        df_is_trusted: Device sudah trusted
    """

    __tablename__ = "device_fingerprints"

    df_id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False
    )
    df_user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.u_id", ondelete="CASCADE"),
        nullable=False
    )
    df_fingerprint_hash = Column(String(64), nullable=False)
    df_first_seen_ip = Column(String(45), nullable=True)
    df_last_seen_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    df_login_count = Column(Integer, nullable=False, default=1)
    df_is_trusted = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint('df_user_id', 'df_fingerprint_hash', name='uq_device_fingerprints_user_hash'),
        Index('idx_device_fingerprints_is_trusted', 'df_is_trusted'),
    )

    def __repr__(self) -> str:
        return (
            f"<DeviceFingerprint(id={self.df_id}, user_id={self.df_user_id}, "
            f"logins={self.df_login_count}, trusted={self.df_is_trusted})>"
        )
