"""
Lease lock over causa rows.

Covers acquire/release semantics, expiry takeover, the fence counter,
stuck detection and bulk clearing, store failures, and concurrent acquires
from independent sessions.
"""

import threading
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from eje_api.causas.models import Causa
from eje_api.locks import lease
from eje_api.shared.db import Base
from eje_api.shared.utils import utcnow


def _reload(db, causa_id):
    db.expire_all()
    return db.get(Causa, causa_id)


class TestAcquire:
    def test_free_record_is_acquired(self, db, make_causa):
        causa = make_causa()

        assert lease.acquire(db, causa.id, "worker-1") is True

        row = _reload(db, causa.id)
        assert row.locked_by == "worker-1"
        assert row.locked_at is not None

    def test_second_worker_is_refused_before_expiry(self, db, make_causa):
        causa = make_causa()

        assert lease.acquire(db, causa.id, "worker-1") is True
        assert lease.acquire(db, causa.id, "worker-2") is False
        assert _reload(db, causa.id).locked_by == "worker-1"

    def test_same_worker_cannot_reacquire_live_lease(self, db, make_causa):
        causa = make_causa()

        assert lease.acquire(db, causa.id, "worker-1") is True
        assert lease.acquire(db, causa.id, "worker-1") is False

    def test_missing_record_returns_false(self, db):
        assert lease.acquire(db, 9999, "worker-1") is False

    def test_expired_lease_is_taken_over(self, db, make_causa):
        causa = make_causa(locked_by="worker-1", locked_at=utcnow() - timedelta(minutes=30))

        assert lease.acquire(db, causa.id, "worker-2") is True
        assert _reload(db, causa.id).locked_by == "worker-2"

    def test_holder_without_timestamp_keeps_the_row(self, db, make_causa):
        causa = make_causa(locked_by="worker-1", locked_at=None)

        assert lease.acquire(db, causa.id, "worker-2") is False
        assert _reload(db, causa.id).locked_by == "worker-1"
        assert lease.current_fence(db, causa.id) == 0


class TestExpiryBoundary:
    """Lease duration is 10 minutes."""

    def test_lease_duration_is_ten_minutes(self):
        assert lease.LEASE_DURATION == timedelta(minutes=10)

    def test_eleven_minutes_old_is_available(self, db, make_causa):
        now = utcnow()
        causa = make_causa(locked_by="worker-1", locked_at=now - timedelta(minutes=11))

        assert lease.acquire(db, causa.id, "worker-2", now=now) is True

    def test_nine_minutes_old_is_held(self, db, make_causa):
        now = utcnow()
        causa = make_causa(locked_by="worker-1", locked_at=now - timedelta(minutes=9))

        assert lease.acquire(db, causa.id, "worker-2", now=now) is False
        assert _reload(db, causa.id).locked_by == "worker-1"


class TestRelease:
    def test_release_then_acquire_by_other_worker(self, db, make_causa):
        causa = make_causa()
        assert lease.acquire(db, causa.id, "worker-1") is True

        assert lease.release(db, causa.id) is True
        row = _reload(db, causa.id)
        assert row.locked_by is None
        assert row.locked_at is None

        assert lease.acquire(db, causa.id, "worker-2") is True

    def test_release_unknown_record_succeeds(self, db):
        assert lease.release(db, 424242) is True

    def test_release_already_free_record_succeeds(self, db, make_causa):
        causa = make_causa()
        assert lease.release(db, causa.id) is True


class TestFence:
    def test_each_acquire_bumps_fence(self, db, make_causa):
        causa = make_causa()
        assert lease.current_fence(db, causa.id) == 0

        lease.acquire(db, causa.id, "worker-1")
        assert lease.current_fence(db, causa.id) == 1

        lease.release(db, causa.id)
        lease.acquire(db, causa.id, "worker-2")
        assert lease.current_fence(db, causa.id) == 2

    def test_refused_acquire_leaves_fence_alone(self, db, make_causa):
        causa = make_causa()
        lease.acquire(db, causa.id, "worker-1")
        lease.acquire(db, causa.id, "worker-2")

        assert lease.current_fence(db, causa.id) == 1

    def test_takeover_is_visible_to_previous_holder(self, db, make_causa):
        causa = make_causa()
        past = utcnow() - timedelta(minutes=15)
        lease.acquire(db, causa.id, "worker-1", now=past)
        held_fence = lease.current_fence(db, causa.id)

        lease.acquire(db, causa.id, "worker-2")

        assert lease.current_fence(db, causa.id) > held_fence


class TestStuck:
    def test_find_and_clear_only_expired_leases(self, db, make_causa):
        now = utcnow()
        stuck = make_causa(locked_by="w1", locked_at=now - timedelta(minutes=45))
        live = make_causa(locked_by="w2", locked_at=now - timedelta(minutes=2))
        free = make_causa()

        found = lease.find_stuck(db, now)
        assert [c.id for c in found] == [stuck.id]
        assert lease.count_stuck(db, now) == 1

        assert lease.clear_stuck(db, now) == 1

        assert _reload(db, stuck.id).locked_by is None
        assert _reload(db, live.id).locked_by == "w2"
        assert _reload(db, free.id).locked_by is None

    def test_holder_without_timestamp_is_not_stuck(self, db, make_causa):
        causa = make_causa(locked_by="worker-1", locked_at=None)

        assert lease.find_stuck(db) == []
        assert lease.clear_stuck(db) == 0
        assert _reload(db, causa.id).locked_by == "worker-1"

    def test_clear_with_nothing_stuck(self, db, make_causa):
        make_causa(locked_by="w2", locked_at=utcnow())
        assert lease.clear_stuck(db) == 0


class TestStoreFailure:
    def test_acquire_returns_false_on_store_error(self, db, make_causa, monkeypatch):
        causa = make_causa()

        def boom(*args, **kwargs):
            raise OperationalError("UPDATE", {}, Exception("database unavailable"))

        monkeypatch.setattr(db, "execute", boom)
        assert lease.acquire(db, causa.id, "worker-1") is False

    def test_release_returns_false_on_store_error(self, db, make_causa, monkeypatch):
        causa = make_causa()

        def boom(*args, **kwargs):
            raise OperationalError("UPDATE", {}, Exception("database unavailable"))

        monkeypatch.setattr(db, "execute", boom)
        assert lease.release(db, causa.id) is False


class TestConcurrentAcquire:
    WORKERS = 8

    @pytest.fixture
    def file_sessions(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'lease.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(engine)
        yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
        engine.dispose()

    def test_exactly_one_winner(self, file_sessions):
        with file_sessions() as s:
            causa = Causa(cuij="J-01-00000001-5/2021-0", numero=1, anio=2021)
            s.add(causa)
            s.commit()
            causa_id = causa.id

        barrier = threading.Barrier(self.WORKERS)
        results = {}

        def worker(name):
            with file_sessions() as s:
                barrier.wait()
                results[name] = lease.acquire(s, causa_id, name)

        threads = [
            threading.Thread(target=worker, args=(f"worker-{i}",)) for i in range(self.WORKERS)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        winners = [name for name, ok in results.items() if ok]
        assert len(results) == self.WORKERS
        assert len(winners) == 1

        with file_sessions() as s:
            assert s.get(Causa, causa_id).locked_by == winners[0]
