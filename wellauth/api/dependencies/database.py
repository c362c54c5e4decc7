"""
Database dependencies untuk FastAPI.
Menyediakan database session per request.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from wellauth.db.session import SessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency untuk mendapatkan database session.
    Menggunakan async context manager untuk proper cleanup.

    Yields:
        AsyncSession: Database session
    """
    async with SessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
