"""
Tests for the session registry and device trust.
"""

from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy import select

from wellauth.core.constants import LoginMethod, SecurityEventType, SessionEndReason
from wellauth.core.exceptions import NotFoundError
from wellauth.core.security import security
from wellauth.db.base import utcnow
from wellauth.models.session import UserSession
from wellauth.services.security_log import SecurityEventService
from wellauth.services.session import SessionRegistry


@pytest.fixture
def registry(db_session, policy):
    return SessionRegistry(db_session, policy=policy)


@pytest.mark.integration
class TestCreateSession:
    """Test session creation and device tracking."""

    @pytest.mark.asyncio
    async def test_creates_active_session(self, registry, policy, test_user):
        session = await registry.create_session(
            test_user.u_id,
            device_fingerprint="laptop-chrome",
            login_method=LoginMethod.OAUTH,
            ip_address="10.0.0.1",
            user_agent="pytest"
        )

        assert session.us_is_active is True
        assert session.us_login_method == "oauth"
        assert session.us_ip_address == "10.0.0.1"
        assert session.us_expires_at - session.us_last_activity_at == policy.session_ttl

    @pytest.mark.asyncio
    async def test_fingerprint_is_stored_hashed(self, registry, test_user):
        session = await registry.create_session(test_user.u_id, device_fingerprint="laptop-chrome")

        assert session.us_device_fingerprint == security.hash_token("laptop-chrome")
        device = await registry.get_device(test_user.u_id, security.hash_token("laptop-chrome"))
        assert device is not None
        assert device.df_fingerprint_hash != "laptop-chrome"

    @pytest.mark.asyncio
    async def test_session_without_fingerprint(self, registry, test_user):
        session = await registry.create_session(test_user.u_id)

        assert session.us_device_fingerprint is None

    @pytest.mark.asyncio
    async def test_device_trusted_on_third_login(self, db_session, registry, test_user):
        fingerprint_hash = security.hash_token("phone")

        await registry.create_session(test_user.u_id, device_fingerprint="phone")
        device = await registry.get_device(test_user.u_id, fingerprint_hash)
        assert device.df_login_count == 1
        assert device.df_is_trusted is False

        await registry.create_session(test_user.u_id, device_fingerprint="phone")
        device = await registry.get_device(test_user.u_id, fingerprint_hash)
        assert device.df_login_count == 2
        assert device.df_is_trusted is False

        await registry.create_session(test_user.u_id, device_fingerprint="phone")
        device = await registry.get_device(test_user.u_id, fingerprint_hash)
        assert device.df_login_count == 3
        assert device.df_is_trusted is True

        await registry.create_session(test_user.u_id, device_fingerprint="phone")
        device = await registry.get_device(test_user.u_id, fingerprint_hash)
        assert device.df_login_count == 4
        assert device.df_is_trusted is True

        events = await SecurityEventService(db_session).get_user_events(
            test_user.u_id, event_type=SecurityEventType.DEVICE_TRUSTED
        )
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_devices_are_tracked_per_user(self, registry, test_user, other_user):
        await registry.create_session(test_user.u_id, device_fingerprint="shared-kiosk")
        await registry.create_session(other_user.u_id, device_fingerprint="shared-kiosk")

        mine = await registry.get_device(test_user.u_id, security.hash_token("shared-kiosk"))
        theirs = await registry.get_device(other_user.u_id, security.hash_token("shared-kiosk"))
        assert mine.df_id != theirs.df_id
        assert mine.df_login_count == 1
        assert theirs.df_login_count == 1


@pytest.mark.integration
class TestListSessions:
    """Test listing active sessions."""

    @pytest.mark.asyncio
    async def test_most_recent_activity_first(self, db_session, registry, test_user):
        now = utcnow()
        oldest = await registry.create_session(test_user.u_id)
        newest = await registry.create_session(test_user.u_id)
        middle = await registry.create_session(test_user.u_id)

        oldest.us_last_activity_at = now - timedelta(hours=3)
        middle.us_last_activity_at = now - timedelta(hours=2)
        newest.us_last_activity_at = now - timedelta(hours=1)
        await db_session.commit()

        sessions = await registry.list_active_sessions(test_user.u_id)

        assert [s.us_id for s in sessions] == [newest.us_id, middle.us_id, oldest.us_id]

    @pytest.mark.asyncio
    async def test_excludes_expired_and_revoked(self, db_session, registry, test_user):
        active = await registry.create_session(test_user.u_id)
        expired = await registry.create_session(test_user.u_id)
        revoked = await registry.create_session(test_user.u_id)

        expired.us_expires_at = utcnow() - timedelta(minutes=1)
        await db_session.commit()
        await registry.revoke_session(revoked.us_id, test_user.u_id)

        sessions = await registry.list_active_sessions(test_user.u_id)

        assert [s.us_id for s in sessions] == [active.us_id]

    @pytest.mark.asyncio
    async def test_only_own_sessions(self, registry, test_user, other_user):
        await registry.create_session(other_user.u_id)

        assert await registry.list_active_sessions(test_user.u_id) == []


@pytest.mark.integration
class TestRevokeSessions:
    """Test session revocation."""

    @pytest.mark.asyncio
    async def test_revoke_single_session(self, db_session, registry, test_user):
        session = await registry.create_session(test_user.u_id)

        revoked = await registry.revoke_session(session.us_id, test_user.u_id, ip_address="10.0.0.1")

        assert revoked.us_is_active is False
        assert revoked.us_revoked_at is not None
        assert revoked.us_revoke_reason == SessionEndReason.USER_REVOKED.value

        events = await SecurityEventService(db_session).get_user_events(
            test_user.u_id, event_type=SecurityEventType.SESSION_REVOKED
        )
        assert events[0].sl_details["session_id"] == str(session.us_id)

    @pytest.mark.asyncio
    async def test_revoke_is_idempotent_for_own_session(self, db_session, registry, test_user):
        session = await registry.create_session(test_user.u_id)
        first = await registry.revoke_session(session.us_id, test_user.u_id)
        revoked_at = first.us_revoked_at

        second = await registry.revoke_session(session.us_id, test_user.u_id)

        assert second.us_is_active is False
        assert second.us_revoked_at == revoked_at

        events = await SecurityEventService(db_session).get_user_events(
            test_user.u_id, event_type=SecurityEventType.SESSION_REVOKED
        )
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_foreign_session_is_not_found(self, db_session, registry, test_user, other_user):
        session = await registry.create_session(other_user.u_id)

        with pytest.raises(NotFoundError) as exc_info:
            await registry.revoke_session(session.us_id, test_user.u_id)
        assert exc_info.value.code == "SESSION_NOT_FOUND"

        result = await db_session.execute(
            select(UserSession.us_is_active).where(UserSession.us_id == session.us_id)
        )
        assert result.scalar_one() is True

    @pytest.mark.asyncio
    async def test_unknown_session_is_not_found(self, registry, test_user):
        with pytest.raises(NotFoundError) as exc_info:
            await registry.revoke_session(uuid4(), test_user.u_id)
        assert exc_info.value.code == "SESSION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_revoke_all_returns_count(self, db_session, registry, test_user, other_user):
        for _ in range(3):
            await registry.create_session(test_user.u_id)
        await registry.create_session(other_user.u_id)

        revoked = await registry.revoke_all_sessions(test_user.u_id)

        assert revoked == 3
        assert await registry.list_active_sessions(test_user.u_id) == []
        assert len(await registry.list_active_sessions(other_user.u_id)) == 1

        events = await SecurityEventService(db_session).get_user_events(
            test_user.u_id, event_type=SecurityEventType.SESSIONS_REVOKED_ALL
        )
        assert events[0].sl_details == {"revoked_count": 3}

    @pytest.mark.asyncio
    async def test_revoke_all_without_sessions(self, registry, test_user):
        assert await registry.revoke_all_sessions(test_user.u_id) == 0
