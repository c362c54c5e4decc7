"""
Pytest configuration and fixtures for WellAuth tests.
"""

import os

# Settings dibaca saat import; environment harus siap sebelum import wellauth
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-wellauth-tests")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ENVIRONMENT"] = "test"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["RATE_LIMIT_BACKEND"] = "memory"

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Dict, List

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from wellauth.api.dependencies.database import get_db
from wellauth.core.config import settings, SecurityPolicy
from wellauth.core.constants import UserRole
from wellauth.core.security import security
from wellauth.main import create_application
from wellauth.models import Base
from wellauth.models.user import User
from wellauth.services.email import EmailService, wait_for_notifications
from wellauth.services.identity import LocalIdentityProvider
from wellauth.services.rate_limit import InMemoryRateLimitStore


TEST_DATABASE_URL = "sqlite+aiosqlite://"

TEST_PASSWORD = "TestPassword123!"


@pytest_asyncio.fixture
async def engine():
    """Create in-memory test database engine with fresh tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await wait_for_notifications()
        await session.rollback()


@pytest.fixture
def policy() -> SecurityPolicy:
    """Default account security policy."""
    return SecurityPolicy()


@pytest.fixture
def identity(db_session: AsyncSession) -> LocalIdentityProvider:
    return LocalIdentityProvider(db_session)


@pytest.fixture
def mock_email_service(monkeypatch) -> List[Dict[str, str]]:
    """Capture outbound emails instead of sending them."""
    sent: List[Dict[str, str]] = []

    async def fake_send_email(self, to_email, subject, html_body, text_body=None):
        sent.append({
            "to": to_email,
            "subject": subject,
            "html": html_body,
            "text": text_body or ""
        })
        return True

    monkeypatch.setattr(EmailService, "send_email", fake_send_email)
    return sent


async def _create_user(
    db: AsyncSession,
    email: str,
    role: UserRole = UserRole.USER,
    full_name: str = "Test Member"
) -> User:
    user = User(
        u_email=email,
        u_full_name=full_name,
        u_password_hash=security.hash_password(TEST_PASSWORD),
        u_role=role.value,
        u_is_active=True
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user."""
    return await _create_user(db_session, "member@example.com")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Create a second, unrelated user."""
    return await _create_user(db_session, "other@example.com", full_name="Other Member")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin user."""
    return await _create_user(db_session, "admin@example.com", role=UserRole.ADMIN, full_name="Admin")


def make_access_token(user: User, expires_in: timedelta = timedelta(minutes=15), **claims) -> str:
    """Sign a bearer JWT the way the identity provider does."""
    payload = {
        "sub": str(user.u_id),
        "email": user.u_email,
        "exp": datetime.now(timezone.utc) + expires_in,
        **claims
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.ALGORITHM)


@pytest.fixture
def access_token_factory():
    """Factory untuk bearer JWT dengan expiry atau claim custom."""
    return make_access_token


@pytest.fixture
def auth_headers(test_user: User) -> Dict[str, str]:
    """Bearer headers for the test user."""
    return {"Authorization": f"Bearer {make_access_token(test_user)}"}


@pytest.fixture
def other_auth_headers(other_user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(other_user)}"}


@pytest.fixture
def admin_headers(admin_user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(admin_user)}"}


@pytest.fixture
def app(db_session: AsyncSession):
    """Application with a fresh rate limit store and the test database."""
    application = create_application(rate_limit_store=InMemoryRateLimitStore())

    async def override_get_db():
        yield db_session

    application.dependency_overrides[get_db] = override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app, mock_email_service) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
