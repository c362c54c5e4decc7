"""
Database module untuk WellAuth.
Berisi base model, session management, dan konfigurasi database.
"""

from wellauth.db.base import Base, BaseModel, UTCDateTime, utcnow
from wellauth.db.session import (
    engine,
    SessionLocal,
    get_session,
    init_db,
    close_db
)

__all__ = [
    "Base",
    "BaseModel",
    "UTCDateTime",
    "utcnow",
    "engine",
    "SessionLocal",
    "get_session",
    "init_db",
    "close_db"
]
