"""
Base model untuk SQLAlchemy.
Semua model harus inherit dari BaseModel untuk mendapatkan common fields dan behavior.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import uuid

from sqlalchemy import Column, DateTime, inspect
from sqlalchemy.orm import as_declarative, declared_attr
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    """Waktu sekarang dalam UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    DateTime yang selalu timezone-aware UTC.

    PostgreSQL menyimpan TIMESTAMPTZ apa adanya. Dialect tanpa dukungan
    timezone (SQLite) menerima nilai naive UTC dan hasil baca dipasang
    kembali tzinfo UTC, sehingga perbandingan di Python tetap konsisten.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


@as_declarative()
class Base:
    """
    Base class untuk semua SQLAlchemy models.
    Menggunakan @as_declarative untuk membuat declarative base.
    """

    # Generate __tablename__ automatically dari class name
    @declared_attr
    def __tablename__(cls) -> str:
        """
        Generate table name dari class name.
        Contoh: UserSession -> user_sessions
        """
        name = cls.__name__
        result = []
        for i, char in enumerate(name):
            if i > 0 and char.isupper():
                if (name[i-1].islower() or
                        (i < len(name) - 1 and name[i+1].islower())):
                    result.append('_')
            result.append(char.lower())

        table_name = ''.join(result)
        if not table_name.endswith('s'):
            table_name += 's'
        return table_name

    def dict(self, exclude: Optional[set] = None) -> Dict[str, Any]:
        """
        Convert model instance to dictionary.

        Args:
            exclude: Set of fields to exclude

        Returns:
            Dictionary representation of model
        """
        exclude = exclude or set()

        result = {}
        for column in inspect(self.__class__).columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.name)

            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, uuid.UUID):
                value = str(value)

            result[column.name] = value

        return result

    def __repr__(self) -> str:
        class_name = self.__class__.__name__

        primary_keys = []
        for column in inspect(self.__class__).primary_key:
            value = getattr(self, column.name)
            primary_keys.append(f"{column.name}={value}")

        if primary_keys:
            return f"<{class_name}({', '.join(primary_keys)})>"
        return f"<{class_name}>"


class BaseModel(Base):
    """
    Abstract base model dengan common fields.
    Semua models yang perlu timestamp fields harus inherit dari ini.
    """
    __abstract__ = True

    created_at = Column(
        UTCDateTime(),
        default=utcnow,
        nullable=False,
        index=True
    )

    updated_at = Column(
        UTCDateTime(),
        default=None,
        onupdate=utcnow,
        nullable=True
    )

    @declared_attr
    def __mapper_args__(cls):
        """
        SQLAlchemy mapper arguments.
        Enable eager defaults untuk mendapatkan server-generated values.
        """
        return {
            "eager_defaults": True
        }
