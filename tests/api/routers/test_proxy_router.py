"""Tests for the public marketplace endpoints."""

import uuid

from sqlalchemy.exc import OperationalError

from jzapi.exceptions import (
    ApiKeyNotActiveError,
    DailyLimitReachedError,
    InvalidApiKeyError,
    ServiceUnavailableError,
    UserBlockedError,
)
from jzapi.services.gate_service import GateAdmission


def _admission(used: int, limit: int = 100) -> GateAdmission:
    return GateAdmission(
        api_key_id=uuid.uuid4(), user_id=uuid.uuid4(), effective_limit=limit, used_count=used
    )


class TestCountryTime:
    """Tests for GET /api/country-time."""

    def test_success_envelope(self, unauthenticated_client, mock_gate):
        mock_gate.authorize_and_consume.return_value = _admission(used=1)

        response = unauthenticated_client.get("/api/country-time?country=id&apikey=jz_key")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] is True
        assert data["code"] == 200
        assert data["creator"] == "JzProject"
        assert data["remaining_limit"] == 99
        assert data["result"][0]["country"] == "ID"
        assert data["result"][0]["utc_offset"] == "GMT+7"
        assert "message" not in data
        mock_gate.check_availability.assert_awaited_once_with("country-time")
        mock_gate.authorize_and_consume.assert_awaited_once_with("jz_key")

    def test_missing_country_does_not_spend_quota(self, unauthenticated_client, mock_gate):
        response = unauthenticated_client.get("/api/country-time?apikey=jz_key")

        assert response.status_code == 400
        assert response.json() == {
            "status": False,
            "code": 400,
            "creator": "JzProject",
            "message": "Query parameter 'country' is required.",
        }
        mock_gate.authorize_and_consume.assert_not_called()

    def test_missing_apikey(self, unauthenticated_client, mock_gate):
        response = unauthenticated_client.get("/api/country-time?country=id")

        assert response.status_code == 400
        assert response.json()["message"] == "Query parameter 'apikey' is required."

    def test_invalid_key(self, unauthenticated_client, mock_gate):
        mock_gate.authorize_and_consume.side_effect = InvalidApiKeyError()

        response = unauthenticated_client.get("/api/country-time?country=id&apikey=bad")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid API key."

    def test_revoked_key(self, unauthenticated_client, mock_gate):
        mock_gate.authorize_and_consume.side_effect = ApiKeyNotActiveError()

        response = unauthenticated_client.get("/api/country-time?country=id&apikey=jz_old")

        assert response.status_code == 403

    def test_blocked_owner(self, unauthenticated_client, mock_gate):
        mock_gate.authorize_and_consume.side_effect = UserBlockedError(
            "Account has been blocked permanently."
        )

        response = unauthenticated_client.get("/api/country-time?country=id&apikey=jz_key")

        assert response.status_code == 403
        assert response.json()["message"] == "Account has been blocked permanently."

    def test_daily_limit_reached(self, unauthenticated_client, mock_gate):
        mock_gate.authorize_and_consume.side_effect = DailyLimitReachedError(limit=100)

        response = unauthenticated_client.get("/api/country-time?country=id&apikey=jz_key")

        assert response.status_code == 429
        assert response.json() == {
            "status": False,
            "code": 429,
            "creator": "JzProject",
            "message": "Daily limit reached.",
        }

    def test_database_failure_keeps_envelope_shape(self, unauthenticated_client, mock_gate):
        mock_gate.authorize_and_consume.side_effect = OperationalError(
            "UPDATE usage_logs", {}, Exception("connection lost")
        )

        response = unauthenticated_client.get("/api/country-time?country=id&apikey=jz_key")

        assert response.status_code == 500
        assert response.json() == {
            "status": False,
            "code": 500,
            "creator": "JzProject",
            "message": "Database operation failed",
        }

    def test_maintenance(self, unauthenticated_client, mock_gate):
        mock_gate.check_availability.side_effect = ServiceUnavailableError(
            "Endpoint is under maintenance."
        )

        response = unauthenticated_client.get("/api/country-time?country=id&apikey=jz_key")

        assert response.status_code == 503
        assert response.json()["message"] == "Endpoint is under maintenance."
        mock_gate.authorize_and_consume.assert_not_called()

    def test_request_id_is_echoed(self, unauthenticated_client, mock_gate):
        mock_gate.authorize_and_consume.return_value = _admission(used=3)

        response = unauthenticated_client.get(
            "/api/country-time?country=id&apikey=jz_key", headers={"X-Request-ID": "req-42"}
        )

        assert response.headers["X-Request-ID"] == "req-42"


class TestInfoImei:
    """Tests for GET /api/info-imei."""

    def test_invalid_imei(self, unauthenticated_client, mock_gate):
        response = unauthenticated_client.get("/api/info-imei?imei=123&apikey=jz_key")

        assert response.status_code == 400
        assert response.json()["message"] == "Query parameter 'imei' must contain 14-17 digits."
        mock_gate.authorize_and_consume.assert_not_called()

    def test_unconfigured_source_does_not_spend_quota(self, unauthenticated_client, mock_gate):
        response = unauthenticated_client.get(
            "/api/info-imei?imei=356938035643809&apikey=jz_key"
        )

        assert response.status_code == 500
        assert response.json()["message"] == "IMEI source API key is not configured."
        mock_gate.authorize_and_consume.assert_not_called()
