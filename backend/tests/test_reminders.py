"""Tests for the reminder definition API endpoints."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from notification_engine.main import app
from tests.conftest import OTHER_USER_ID

URL = "/v1/reminders/"
OTHER_USER = {"X-User-Id": str(OTHER_USER_ID)}


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


def _create(client, **overrides):
    payload = {
        "notification_type": "salat_reminder",
        "data": {"prayer_name": "Asr"},
        "repeat_pattern": "daily",
        "time_of_day": "15:30",
    }
    payload.update(overrides)
    return client.post(URL, json=payload)


class TestCreateReminder:
    def test_create(self, client, user_id):
        response = _create(client)

        assert response.status_code == 201
        body = response.json()
        assert body["user_id"] == str(user_id)
        assert body["repeat_pattern"] == "daily"
        assert body["time_of_day"] == "15:30"
        assert body["is_enabled"] is True
        assert body["delivery_methods"] == ["push"]

    def test_create_custom(self, client):
        response = _create(client, repeat_pattern="custom", cron_expression="0 9 * * mon-fri")
        assert response.status_code == 201
        assert response.json()["cron_expression"] == "0 9 * * mon-fri"

    def test_unknown_type(self, client):
        response = _create(client, notification_type="nope")
        assert response.status_code == 400

    @pytest.mark.parametrize(
        "overrides",
        [
            {"repeat_pattern": "custom"},
            {"repeat_pattern": "custom", "cron_expression": "61 * * * *"},
            {"repeat_pattern": "hourly"},
            {"time_of_day": "7pm"},
            {"days_of_week": [8]},
            {"day_of_month": 32},
            {"starts_at": "2026-10-14T12:00:00Z", "ends_at": "2026-10-13T12:00:00Z"},
        ],
    )
    def test_validation(self, client, overrides):
        assert _create(client, **overrides).status_code == 422


class TestReadReminders:
    def test_list(self, client):
        _create(client)
        disabled = _create(client, is_enabled=False).json()
        client.post(
            URL,
            json={"notification_type": "welcome", "time_of_day": "08:00"},
            headers=OTHER_USER,
        )

        response = client.get(URL)
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "2"

        enabled_only = client.get(URL + "?is_enabled=true").json()
        assert disabled["id"] not in [r["id"] for r in enabled_only]
        assert len(enabled_only) == 1

    def test_get(self, client):
        created = _create(client).json()

        response = client.get(f"{URL}{created['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    def test_get_other_user(self, client):
        created = _create(client).json()
        assert client.get(f"{URL}{created['id']}", headers=OTHER_USER).status_code == 404

    def test_get_missing(self, client):
        assert client.get(f"{URL}{uuid4()}").status_code == 404


class TestUpdateReminder:
    def test_patch(self, client):
        created = _create(client).json()

        response = client.patch(
            f"{URL}{created['id']}",
            json={"time_of_day": "16:00", "days_of_week": [5, 1]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["time_of_day"] == "16:00"
        assert body["days_of_week"] == [1, 5]
        assert body["data"] == {"prayer_name": "Asr"}

    def test_patch_to_custom_without_cron(self, client):
        created = _create(client).json()
        response = client.patch(f"{URL}{created['id']}", json={"repeat_pattern": "custom"})
        assert response.status_code == 400

    def test_patch_invalid_cron(self, client):
        created = _create(client).json()
        response = client.patch(f"{URL}{created['id']}", json={"cron_expression": "* *"})
        assert response.status_code == 422

    def test_patch_other_user(self, client):
        created = _create(client).json()
        response = client.patch(
            f"{URL}{created['id']}", json={"time_of_day": "16:00"}, headers=OTHER_USER
        )
        assert response.status_code == 404


class TestDisableReminder:
    def test_delete_disables(self, client):
        created = _create(client).json()

        response = client.delete(f"{URL}{created['id']}")

        assert response.status_code == 200
        assert response.json()["is_enabled"] is False
        # The definition is kept
        assert client.get(f"{URL}{created['id']}").status_code == 200

    def test_delete_missing(self, client):
        assert client.delete(f"{URL}{uuid4()}").status_code == 404
