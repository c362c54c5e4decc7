"""
End-to-end tests for the HTTP API.
"""

import asyncio
import re
from datetime import timedelta

import pytest

from wellauth.core.constants import ResponseMessage
from wellauth.services.email import EmailService, wait_for_notifications


API = "/api/v1"
TOKEN_PATTERN = re.compile(r"token=([0-9a-f]{64})")


async def record_attempt(client, email, success):
    return await client.post(
        f"{API}/auth/record-login-attempt",
        json={"email": email, "success": success, "failure_reason": None if success else "invalid_password"}
    )


async def lock_via_api(client, email="member@example.com"):
    response = None
    for _ in range(5):
        response = await record_attempt(client, email, False)
    return response


@pytest.mark.integration
class TestHealthEndpoints:
    """Test health endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_readiness_checks_database(self, client):
        response = await client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["details"]["database"]["connected"] is True

    @pytest.mark.asyncio
    async def test_request_id_header(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.headers["X-Request-ID"]


@pytest.mark.integration
class TestRecordLoginAttempt:
    """Test the login attempt endpoint."""

    @pytest.mark.asyncio
    async def test_failure_reports_remaining(self, client, test_user):
        response = await record_attempt(client, "Member@Example.com", False)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["locked"] is False
        assert data["remaining_attempts"] == 4
        assert "warning" not in data
        assert "X-RateLimit-Remaining" in response.headers

    @pytest.mark.asyncio
    async def test_warning_near_threshold(self, client, test_user):
        for _ in range(3):
            response = await record_attempt(client, test_user.u_email, False)

        data = response.json()
        assert data["remaining_attempts"] == 2
        assert "2 login attempt(s) remaining" in data["warning"]

    @pytest.mark.asyncio
    async def test_fifth_failure_locks(self, client, test_user, mock_email_service):
        response = await lock_via_api(client)

        data = response.json()
        assert data["locked"] is True
        assert data["remaining_attempts"] == 0
        assert data["unlock_at"]
        assert data["message"] == ResponseMessage.ACCOUNT_LOCKED
        await wait_for_notifications()
        assert mock_email_service[-1]["to"] == "member@example.com"

    @pytest.mark.asyncio
    async def test_success_while_locked_stays_locked(self, client, test_user):
        await lock_via_api(client)

        response = await record_attempt(client, test_user.u_email, True)

        data = response.json()
        assert data["locked"] is True
        assert data["message"] == ResponseMessage.ACCOUNT_STILL_LOCKED

    @pytest.mark.asyncio
    async def test_unknown_email_is_recorded(self, client):
        response = await record_attempt(client, "ghost@example.com", False)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "locked": False,
            "message": ResponseMessage.LOGIN_RECORDED
        }

    @pytest.mark.asyncio
    async def test_invalid_email_is_validation_error(self, client):
        response = await client.post(
            f"{API}/auth/record-login-attempt",
            json={"email": "not-an-email", "success": False}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["error"] == "Invalid input"
        assert data["details"][0]["field"] == "email"


@pytest.mark.integration
class TestPasswordResetFlow:
    """Test the password reset endpoints."""

    @pytest.mark.asyncio
    async def test_response_does_not_reveal_account(self, client, test_user, mock_email_service):
        existing = await client.post(f"{API}/auth/request-password-reset", json={"email": test_user.u_email})
        ghost = await client.post(f"{API}/auth/request-password-reset", json={"email": "ghost@example.com"})

        assert existing.status_code == ghost.status_code == 200
        assert existing.json() == ghost.json() == {
            "success": True,
            "message": ResponseMessage.PASSWORD_RESET_REQUESTED
        }
        await wait_for_notifications()
        assert len(mock_email_service) == 1

    @pytest.mark.asyncio
    async def test_request_returns_before_delivery(self, client, test_user, monkeypatch):
        release = asyncio.Event()
        delivered = []

        async def slow_send(self, to_email, subject, html_body, text_body=None):
            await release.wait()
            delivered.append(to_email)
            return True

        monkeypatch.setattr(EmailService, "send_email", slow_send)

        response = await asyncio.wait_for(
            client.post(f"{API}/auth/request-password-reset", json={"email": test_user.u_email}),
            timeout=5
        )

        assert response.status_code == 200
        assert delivered == []

        release.set()
        await wait_for_notifications()
        assert delivered == ["member@example.com"]

    @pytest.mark.asyncio
    async def test_lockout_returns_before_delivery(self, client, test_user, monkeypatch):
        release = asyncio.Event()

        async def slow_send(self, to_email, subject, html_body, text_body=None):
            await release.wait()
            return True

        monkeypatch.setattr(EmailService, "send_email", slow_send)

        response = await asyncio.wait_for(lock_via_api(client), timeout=5)

        assert response.json()["locked"] is True
        release.set()
        await wait_for_notifications()

    @pytest.mark.asyncio
    async def test_full_reset(self, client, test_user, auth_headers, mock_email_service):
        await client.post(f"{API}/sessions", json={"device_fingerprint": "laptop"}, headers=auth_headers)
        await client.post(f"{API}/auth/request-password-reset", json={"email": test_user.u_email})
        await wait_for_notifications()
        token = TOKEN_PATTERN.search(mock_email_service[-1]["text"]).group(1)

        verify = await client.post(f"{API}/auth/verify-reset-token", json={"token": token})
        assert verify.status_code == 200
        assert verify.json()["valid"] is True
        assert verify.json()["expires_at"]

        reset = await client.post(
            f"{API}/auth/reset-password",
            json={"token": token, "new_password": "BrandNewPassword!1"}
        )
        assert reset.status_code == 200
        assert reset.json()["message"] == ResponseMessage.PASSWORD_RESET_SUCCESS

        again = await client.post(
            f"{API}/auth/reset-password",
            json={"token": token, "new_password": "AnotherPassword!2"}
        )
        assert again.status_code == 400
        assert again.json() == {
            "error": "Reset token has already been used",
            "code": "TOKEN_USED",
            "details": {"valid": False}
        }

        sessions = await client.get(f"{API}/sessions", headers=auth_headers)
        assert sessions.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_unknown_token(self, client):
        response = await client.post(f"{API}/auth/verify-reset-token", json={"token": "a" * 64})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_malformed_token(self, client):
        response = await client.post(f"{API}/auth/verify-reset-token", json={"token": "not-a-token"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, client):
        response = await client.post(
            f"{API}/auth/reset-password",
            json={"token": "a" * 64, "new_password": "short"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_locked_account_verify_is_forbidden(self, client, test_user, mock_email_service):
        await client.post(f"{API}/auth/request-password-reset", json={"email": test_user.u_email})
        await wait_for_notifications()
        token = TOKEN_PATTERN.search(mock_email_service[-1]["text"]).group(1)
        await lock_via_api(client)

        response = await client.post(f"{API}/auth/verify-reset-token", json={"token": token})

        assert response.status_code == 403
        data = response.json()
        assert data["code"] == "ACCOUNT_LOCKED"
        assert data["details"]["unlock_at"]

    @pytest.mark.asyncio
    async def test_request_rate_limited(self, client, test_user):
        for i in range(5):
            response = await client.post(
                f"{API}/auth/request-password-reset", json={"email": f"user{i}@example.com"}
            )
            assert response.status_code == 200

        response = await client.post(f"{API}/auth/request-password-reset", json={"email": "user9@example.com"})

        assert response.status_code == 429
        data = response.json()
        assert data["code"] == "RATE_LIMIT_EXCEEDED"
        assert isinstance(data["details"]["retry_at"], int)
        assert int(response.headers["Retry-After"]) >= 1
        assert response.headers["X-RateLimit-Remaining"] == "0"


@pytest.mark.integration
class TestSessionEndpoints:
    """Test session endpoints."""

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client):
        response = await client.get(f"{API}/sessions")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, client, test_user, access_token_factory):
        token = access_token_factory(test_user, expires_in=timedelta(minutes=-1))
        response = await client.get(f"{API}/sessions", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_list_and_revoke(self, client, auth_headers):
        created = await client.post(
            f"{API}/sessions",
            json={"device_fingerprint": "laptop", "login_method": "email"},
            headers=auth_headers
        )
        assert created.status_code == 201
        session_id = created.json()["session_id"]

        listed = await client.get(f"{API}/sessions", headers=auth_headers)
        assert listed.status_code == 200
        data = listed.json()
        assert data["total"] == 1
        assert data["sessions"][0]["id"] == session_id
        assert data["sessions"][0]["ip_address"] == "127.0.0.1"

        revoked = await client.request(
            "DELETE", f"{API}/sessions", json={"session_id": session_id}, headers=auth_headers
        )
        assert revoked.status_code == 200
        assert revoked.json() == {"success": True, "message": ResponseMessage.SESSION_REVOKED}

        listed = await client.get(f"{API}/sessions", headers=auth_headers)
        assert listed.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_revoke_all(self, client, auth_headers):
        for i in range(2):
            await client.post(f"{API}/sessions", json={"device_fingerprint": f"d{i}"}, headers=auth_headers)

        response = await client.request(
            "DELETE", f"{API}/sessions", json={"revoke_all": True}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["revoked_count"] == 2

    @pytest.mark.asyncio
    async def test_cannot_revoke_foreign_session(self, client, auth_headers, other_auth_headers):
        created = await client.post(
            f"{API}/sessions", json={"device_fingerprint": "theirs"}, headers=other_auth_headers
        )

        response = await client.request(
            "DELETE", f"{API}/sessions", json={"session_id": created.json()["session_id"]}, headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["code"] == "SESSION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_revoke_requires_target(self, client, auth_headers):
        response = await client.request("DELETE", f"{API}/sessions", json={}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.integration
class TestAdminUnlock:
    """Test manual unlock."""

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, client, test_user, auth_headers):
        response = await client.post(
            f"{API}/admin/account-lockouts/unlock",
            json={"user_id": str(test_user.u_id)},
            headers=auth_headers
        )

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_admin_unlocks(self, client, test_user, admin_headers):
        user_id = str(test_user.u_id)
        await lock_via_api(client)

        response = await client.post(
            f"{API}/admin/account-lockouts/unlock", json={"user_id": user_id}, headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == user_id
        assert data["lockout_id"]
        assert data["message"] == ResponseMessage.ACCOUNT_UNLOCKED

        after = await record_attempt(client, test_user.u_email, False)
        assert after.json()["locked"] is False
        assert after.json()["remaining_attempts"] == 4

    @pytest.mark.asyncio
    async def test_no_active_lockout(self, client, test_user, admin_headers):
        response = await client.post(
            f"{API}/admin/account-lockouts/unlock",
            json={"user_id": str(test_user.u_id)},
            headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json()["code"] == "LOCKOUT_NOT_FOUND"


@pytest.mark.integration
class TestErrorEnvelope:
    """Test error responses."""

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get(f"{API}/does-not-exist")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_hidden(self, app, client):
        async def explode():
            raise RuntimeError("database password is hunter2")

        app.add_api_route("/explode", explode)

        response = await client.get("/explode")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}
        assert "hunter2" not in response.text
