"""Worker configuration document under /api/config."""

from sqlalchemy import func, select

from eje_api.worker_config.models import DEFAULT_RATE_LIMIT, DEFAULT_SCHEDULE, WorkerConfig
from eje_api.worker_config.router import get_or_create

BASE = "/api/config"


class TestGetOrCreate:
    def test_first_read_creates_defaults(self, client, api_headers, db):
        res = client.get(BASE, headers=api_headers)
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["enabled"] is True
        assert data["batch_size"] == 10
        assert data["schedule"] == DEFAULT_SCHEDULE
        assert data["rate_limit"] == DEFAULT_RATE_LIMIT

        client.get(BASE, headers=api_headers)
        assert db.scalar(select(func.count(WorkerConfig.id))) == 1

    def test_helper_returns_existing_row(self, db):
        first = get_or_create(db)
        assert get_or_create(db).id == first.id

    def test_needs_credentials(self, client):
        assert client.get(BASE).status_code == 401


class TestUpdate:
    def test_partial_nested_update_keeps_other_keys(self, client, admin_headers):
        res = client.patch(
            BASE,
            json={"batch_size": 25, "schedule": {"start_hour": 6}},
            headers=admin_headers,
        )
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["batch_size"] == 25
        assert data["schedule"]["start_hour"] == 6
        assert data["schedule"]["end_hour"] == DEFAULT_SCHEDULE["end_hour"]
        assert data["schedule"]["work_days"] == DEFAULT_SCHEDULE["work_days"]
        assert data["rate_limit"] == DEFAULT_RATE_LIMIT

    def test_empty_update_is_rejected(self, client, admin_headers):
        res = client.patch(BASE, json={}, headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["detail"] == "No valid fields to update"

        res = client.patch(BASE, json={"schedule": {}}, headers=admin_headers)
        assert res.status_code == 400

    def test_out_of_range_values(self, client, admin_headers):
        res = client.patch(BASE, json={"schedule": {"start_hour": 30}}, headers=admin_headers)
        assert res.status_code == 422

    def test_requires_admin(self, client, user_headers, api_headers):
        assert client.patch(BASE, json={"batch_size": 5}, headers=user_headers).status_code == 403
        assert client.patch(BASE, json={"batch_size": 5}, headers=api_headers).status_code == 401


class TestToggle:
    def test_toggle_flips_enabled(self, client, admin_headers):
        off = client.post(f"{BASE}/toggle", headers=admin_headers).json()
        assert off == {"success": True, "message": "Workers disabled", "enabled": False}

        on = client.post(f"{BASE}/toggle", headers=admin_headers).json()
        assert on["enabled"] is True
        assert on["message"] == "Workers enabled"
