"""Worker statistics and stuck-lease administration under /api/worker-stats."""

from datetime import timedelta

from eje_api.causas.models import Causa
from eje_api.shared.utils import utcnow

BASE = "/api/worker-stats"


class TestStats:
    def test_summary(self, client, api_headers, make_causa):
        now = utcnow()
        make_causa(verified=True, is_valid=True, details_loaded=True, verified_at=now)
        make_causa(verified=True, is_valid=True, details_loaded=False)
        make_causa(verified=False, is_valid=None, error_count=1)
        make_causa(verified=True, is_valid=False, error_count=3)
        make_causa(locked_by="w1", locked_at=now)
        make_causa(locked_by="w2", locked_at=now - timedelta(minutes=30))

        res = client.get(BASE, headers=api_headers)
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["total"] == 6
        assert data["verification"]["completed"] == 3
        assert data["verification"]["rate"] == 50.0
        assert data["details"]["completed"] == 1
        assert data["details"]["pending"] == 1
        assert data["status"]["invalid"] == 1
        assert data["processing"] == {"locked": 2, "stuck": 1, "recently_processed": 1}
        assert data["errors"]["total"] == 2
        assert data["errors"]["distribution"] == [
            {"error_count": 1, "count": 1},
            {"error_count": 3, "count": 1},
        ]

    def test_holder_without_timestamp_is_locked_not_stuck(self, client, api_headers, make_causa):
        make_causa(verified=False, is_valid=None, locked_by="w1", locked_at=None)

        data = client.get(BASE, headers=api_headers).json()["data"]
        assert data["processing"]["locked"] == 1
        assert data["processing"]["stuck"] == 0

        data = client.get(f"{BASE}/eligibility", headers=api_headers).json()["data"]
        assert data["verification"]["eligible"] == 0
        assert data["verification"]["locked"] == 1

    def test_empty_database(self, client, api_headers):
        data = client.get(BASE, headers=api_headers).json()["data"]
        assert data["total"] == 0
        assert data["verification"]["rate"] == 0

    def test_activity_window(self, client, user_headers, make_causa):
        now = utcnow()
        recent = make_causa(verified_at=now - timedelta(hours=1))
        make_causa(verified_at=now - timedelta(hours=30))
        updated = make_causa(details_last_update=now - timedelta(hours=2))

        data = client.get(f"{BASE}/activity", headers=user_headers).json()["data"]
        assert data["period"] == "last 24 hours"
        assert [d["id"] for d in data["verified"]["documents"]] == [recent.id]
        assert [d["id"] for d in data["updated"]["documents"]] == [updated.id]

        data = client.get(f"{BASE}/activity?hours=48", headers=user_headers).json()["data"]
        assert data["verified"]["count"] == 2

    def test_eligibility(self, client, api_headers, make_causa):
        now = utcnow()
        make_causa(verified=False, is_valid=None)
        make_causa(verified=False, is_valid=None, locked_by="w", locked_at=now)
        make_causa(verified=False, is_valid=None, error_count=5)
        make_causa(verified=True, is_valid=True)

        data = client.get(f"{BASE}/eligibility", headers=api_headers).json()["data"]
        assert data["verification"] == {
            "candidates": 3,
            "eligible": 1,
            "locked": 1,
            "too_many_errors": 1,
        }
        assert data["update"]["eligible"] == 1
        assert data["lock_timeout_minutes"] == 10


class TestAdmin:
    def test_errors_paginated(self, client, admin_headers, make_causa):
        low = make_causa(error_count=1, last_error="timeout")
        high = make_causa(error_count=4, last_error="captcha")
        make_causa()

        body = client.get(f"{BASE}/errors", headers=admin_headers).json()
        assert [d["id"] for d in body["data"]] == [high.id, low.id]
        assert body["pagination"]["total"] == 2

    def test_admin_routes_reject_api_key(self, client, api_headers):
        assert client.get(f"{BASE}/stuck", headers=api_headers).status_code == 401
        assert client.post(f"{BASE}/clear-stuck", headers=api_headers).status_code == 401

    def test_stuck_and_clear(self, client, admin_headers, make_causa, db):
        now = utcnow()
        stuck = make_causa(locked_by="w1", locked_at=now - timedelta(minutes=11))
        live = make_causa(locked_by="w2", locked_at=now - timedelta(minutes=9))

        body = client.get(f"{BASE}/stuck", headers=admin_headers).json()
        assert [d["id"] for d in body["data"]] == [stuck.id]
        assert body["count"] == 1

        res = client.post(f"{BASE}/clear-stuck", headers=admin_headers).json()
        assert res["cleared"] == 1
        assert res["message"] == "Cleared 1 stuck locks"

        db.expire_all()
        assert db.get(Causa, stuck.id).locked_by is None
        assert db.get(Causa, live.id).locked_by == "w2"

    def test_reset_error(self, client, admin_headers, make_causa, db):
        causa = make_causa(error_count=3, last_error="boom", stuck_since=utcnow())

        res = client.post(f"{BASE}/reset-error/{causa.id}", headers=admin_headers)
        assert res.status_code == 200
        db.expire_all()
        row = db.get(Causa, causa.id)
        assert row.error_count == 0
        assert row.last_error is None
        assert row.stuck_since is None

        assert client.post(f"{BASE}/reset-error/999", headers=admin_headers).status_code == 404
