"""
User model untuk WellAuth.
Profil minimal yang dipakai identity provider lokal: email, credential hash, dan role.
"""

import uuid

from sqlalchemy import Column, String, Boolean, Uuid, Index

from wellauth.db.base import BaseModel
from wellauth.core.constants import UserRole


class User(BaseModel):
    """
    User model.

    Attributes:
        u_id: User ID (UUID)
        u_email: Email user (unique, lowercase)
        u_full_name: Nama lengkap untuk sapaan di email
        u_password_hash: Hash password (Argon2)
        u_role: Primary role user
        u_is_active: Status aktif akun
    """

    __tablename__ = "users"

    u_id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False
    )
    u_email = Column(String(255), nullable=False, unique=True)
    u_full_name = Column(String(255), nullable=True)
    u_password_hash = Column(String(255), nullable=True)
    u_role = Column(String(50), nullable=False, default=UserRole.USER.value)
    u_is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index('idx_users_role', 'u_role'),
    )

    @property
    def display_name(self) -> str:
        """Nama untuk sapaan, fallback ke bagian lokal email."""
        return self.u_full_name or self.u_email.split("@")[0]

    def __repr__(self) -> str:
        return f"<User(id={self.u_id}, email={self.u_email}, role={self.u_role})>"
