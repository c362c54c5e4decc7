"""
Concurrency tests: independent sessions racing on a shared SQLite file.
"""

import asyncio
import re

import pytest
import pytest_asyncio
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from wellauth.core.constants import UserRole
from wellauth.core.exceptions import UsedTokenError
from wellauth.core.security import security
from wellauth.models import Base
from wellauth.models.lockout import AccountLockout
from wellauth.models.user import User
from wellauth.services.email import wait_for_notifications
from wellauth.services.identity import LocalIdentityProvider
from wellauth.services.lockout import AccountLockoutManager
from wellauth.services.password_reset import PasswordResetTokenService


TOKEN_PATTERN = re.compile(r"token=([0-9a-f]{64})")


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """Engine di atas file SQLite sehingga setiap session punya koneksi sendiri."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'wellauth.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await wait_for_notifications()
    await engine.dispose()


@pytest.fixture
def file_session_factory(file_engine):
    return async_sessionmaker(
        bind=file_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def member(file_session_factory):
    async with file_session_factory() as session:
        user = User(
            u_email="racer@example.com",
            u_full_name="Racing Member",
            u_password_hash=security.hash_password("TestPassword123!"),
            u_role=UserRole.USER.value,
            u_is_active=True
        )
        session.add(user)
        await session.commit()
        return user.u_id, user.u_email


@pytest.mark.integration
class TestConcurrentTokenConsumption:
    """Two requests presenting the same reset token at once."""

    @pytest.mark.asyncio
    async def test_exactly_one_consumer_wins(self, file_session_factory, member, policy, mock_email_service):
        user_id, email = member

        async with file_session_factory() as session:
            service = PasswordResetTokenService(session, LocalIdentityProvider(session), policy=policy)
            await service.request_reset(email)
        await wait_for_notifications()
        token = TOKEN_PATTERN.search(mock_email_service[-1]["text"]).group(1)

        async def consume(new_password):
            async with file_session_factory() as session:
                service = PasswordResetTokenService(session, LocalIdentityProvider(session), policy=policy)
                return await service.consume_token(token, new_password)

        results = await asyncio.gather(
            consume("FirstPassword!1"),
            consume("SecondPassword!2"),
            return_exceptions=True
        )

        winners = [r for r in results if not isinstance(r, BaseException)]
        losers = [r for r in results if isinstance(r, BaseException)]
        assert winners == [user_id]
        assert len(losers) == 1
        assert isinstance(losers[0], UsedTokenError)
        assert losers[0].code == "TOKEN_USED"

        async with file_session_factory() as session:
            user = await LocalIdentityProvider(session).get_user_by_id(user_id)
            winning_password = "FirstPassword!1" if results[0] == user_id else "SecondPassword!2"
            assert security.verify_password(winning_password, user.u_password_hash)


@pytest.mark.integration
class TestConcurrentLockout:
    """Two requests crossing the failure threshold at once."""

    @pytest.mark.asyncio
    async def test_single_active_lockout(self, file_session_factory, member, policy, mock_email_service):
        user_id, email = member

        async def lock():
            async with file_session_factory() as session:
                manager = AccountLockoutManager(session, policy=policy)
                lockout = await manager.lock_account(user_id, email, "Racing Member", 5)
                return lockout.lo_id

        first, second = await asyncio.gather(lock(), lock())

        assert first == second

        async with file_session_factory() as session:
            result = await session.execute(
                select(func.count(AccountLockout.lo_id)).where(
                    AccountLockout.lo_user_id == user_id,
                    AccountLockout.lo_is_active == True  # noqa: E712
                )
            )
            assert result.scalar() == 1

        await wait_for_notifications()
        assert len(mock_email_service) == 1
