"""Tests for the account status router."""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import jwt as pyjwt
import pytest

from jzapi.services.auth_service import AuthService


class TestAccountStatus:
    """Tests for GET /api/v1/account/status."""

    def test_requires_authentication(self, unauthenticated_client):
        response = unauthenticated_client.get("/api/v1/account/status")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "MISSING_TOKEN"

    def test_rejects_malformed_header(self, unauthenticated_client):
        response = unauthenticated_client.get(
            "/api/v1/account/status", headers={"Authorization": "Token abc"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_not_blocked(self, client, mock_user, mock_user_repo):
        response = client.get("/api/v1/account/status")

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == str(mock_user.id)
        assert data["ban"]["blocked"] is False
        assert data["poll_interval_ms"] == 15000
        mock_user_repo.clear_expired_ban.assert_not_called()

    def test_blocked_user_still_sees_status(self, build_client, make_user, frozen_clock):
        user = make_user(
            is_blocked=True,
            ban_until=frozen_clock.now() + timedelta(days=1, hours=3),
            ban_reason="spam",
        )
        client = build_client(user)

        response = client.get("/api/v1/account/status")

        assert response.status_code == 200
        ban = response.json()["ban"]
        assert ban["blocked"] is True
        assert ban["permanent"] is False
        assert ban["reason"] == "spam"
        assert ban["remaining_text"] == "1 day 3 hours"

    def test_expired_ban_is_lifted(
        self, build_client, make_user, frozen_clock, mock_user_repo, mock_db_session
    ):
        user = make_user(is_blocked=True, ban_until=frozen_clock.now() - timedelta(seconds=5))
        client = build_client(user)

        response = client.get("/api/v1/account/status")

        assert response.status_code == 200
        assert response.json()["ban"]["blocked"] is False
        mock_user_repo.clear_expired_ban.assert_awaited_once_with(user.id, frozen_clock.now())
        mock_db_session.commit.assert_awaited()


class TestSessionToken:
    """The real session dependency, with a configured signing secret."""

    SECRET = "router-test-secret-with-enough-length"

    @pytest.fixture(autouse=True)
    def auth_service(self):
        with patch(
            "jzapi.dependencies.get_auth_service", return_value=AuthService(secret=self.SECRET)
        ):
            yield

    def _header(self, user_id) -> dict:
        token = pyjwt.encode(
            {"sub": str(user_id), "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            self.SECRET,
            algorithm="HS256",
        )
        return {"Authorization": f"Bearer {token}"}

    def test_valid_token(self, unauthenticated_client, mock_user_repo, make_user):
        user = make_user(plan="PAID")
        mock_user_repo.get_by_id.return_value = user

        response = unauthenticated_client.get(
            "/api/v1/account/status", headers=self._header(user.id)
        )

        assert response.status_code == 200
        assert response.json()["plan"] == "PAID"
        mock_user_repo.get_by_id.assert_awaited_with(user.id)

    def test_unknown_user(self, unauthenticated_client, mock_user_repo):
        response = unauthenticated_client.get(
            "/api/v1/account/status", headers=self._header(uuid.uuid4())
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "User not found"
