"""
Database session management untuk WellAuth.
Menggunakan SQLAlchemy dengan async support.
"""

from typing import AsyncGenerator
import logging
import time

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.pool import NullPool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text

from wellauth.core.config import settings

logger = logging.getLogger(__name__)


def create_engine() -> AsyncEngine:
    """
    Create async SQLAlchemy engine dengan konfigurasi optimal.

    Returns:
        Configured AsyncEngine
    """
    database_url = str(settings.DATABASE_URL)
    engine_args = {
        "echo": settings.DEBUG,
        "pool_pre_ping": settings.DB_POOL_PRE_PING,
    }

    if settings.ENVIRONMENT == "test":
        # NullPool untuk testing agar tidak ada koneksi yang tertinggal
        engine_args["poolclass"] = NullPool
    elif database_url.startswith("postgresql"):
        engine_args["pool_size"] = settings.DB_POOL_SIZE
        engine_args["max_overflow"] = settings.DB_MAX_OVERFLOW
        engine_args["pool_timeout"] = 30
        engine_args["pool_recycle"] = 3600
        engine_args["connect_args"] = {
            "server_settings": {
                "application_name": settings.APP_NAME,
                "jit": "off",
            },
            "command_timeout": 60,
        }

    return create_async_engine(database_url, **engine_args)


# Create global engine instance
engine = create_engine()

# Create session factory
SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get database session.

    Yields:
        AsyncSession instance
    """
    async with SessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Initialize database.
    - Test connection
    - Create tables jika DB_CREATE_TABLES aktif (biasanya pakai migration tool)
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection successful")

            if settings.DB_CREATE_TABLES:
                from wellauth.models import Base
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables created")

    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise


async def close_db() -> None:
    """
    Close database connections.
    Should be called on application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")


async def check_database_health(session: AsyncSession) -> dict:
    """
    Check database health.

    Args:
        session: Database session yang dipakai untuk query

    Returns:
        Dictionary dengan status koneksi dan response time
    """
    health_info = {
        "connected": False,
        "response_time_ms": None,
        "error": None
    }

    start_time = time.time()
    try:
        await session.execute(text("SELECT 1"))
        health_info["connected"] = True
        health_info["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
    except SQLAlchemyError as e:
        # Detail error hanya ke log, bukan ke response
        health_info["error"] = "unavailable"
        logger.error(f"Database health check failed: {e}")

    return health_info
