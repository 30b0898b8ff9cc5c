# eje_api/locks/lease.py
"""
Lease lock over causa rows, used to hand documents to external workers.

The lock is data, not a process object: ``locked_by`` / ``locked_at`` on the
row. A row is available when nobody holds it or the lease is older than
``LEASE_DURATION``. Acquisition is a single conditional UPDATE, so any
number of worker processes can race for the same row and the database's
per-row write serialization picks exactly one winner. Nothing revokes an
expired lease; it is simply read as available on the next attempt.

Every successful acquire bumps ``lock_fence``. A worker that remembers the
fence it got can tell its lease was taken over (the row now carries a
higher fence) before writing results back.
"""
from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from ..causas.models import Causa
from ..shared.config import settings
from ..shared.utils import utcnow

logger = logging.getLogger(__name__)

LEASE_DURATION = timedelta(minutes=settings.LOCK_TIMEOUT_MINUTES)


def lease_cutoff(now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) - LEASE_DURATION


def available_clause(now: Optional[datetime] = None):
    """WHERE fragment: unlocked, or lease expired. A holder without a timestamp never expires."""
    return or_(Causa.locked_by.is_(None), Causa.locked_at < lease_cutoff(now))


def held_clause(now: Optional[datetime] = None):
    return and_(
        Causa.locked_by.is_not(None),
        or_(Causa.locked_at.is_(None), Causa.locked_at >= lease_cutoff(now)),
    )


def stuck_clause(now: Optional[datetime] = None):
    """Lease taken but never released and already past expiry."""
    return and_(Causa.locked_by.is_not(None), Causa.locked_at < lease_cutoff(now))


def acquire(db: Session, causa_id: int, worker_id: str, now: Optional[datetime] = None) -> bool:
    """
    Claim the row for ``worker_id``. True iff exactly one row matched.

    False covers both "held by someone else" and "no such row", and also a
    store error (logged, rolled back, not retried).
    """
    now = now or utcnow()
    stmt = (
        update(Causa)
        .where(Causa.id == causa_id, available_clause(now))
        .values(locked_by=worker_id, locked_at=now, lock_fence=Causa.lock_fence + 1)
        .execution_options(synchronize_session=False)
    )
    try:
        res = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("error locking causa id=%s worker=%s: %s", causa_id, worker_id, e)
        return False
    acquired = res.rowcount == 1
    logger.debug("lock causa id=%s worker=%s acquired=%s", causa_id, worker_id, acquired)
    return acquired


def release(db: Session, causa_id: int) -> bool:
    """Unconditional unlock. Unknown or already free rows still return True."""
    stmt = (
        update(Causa)
        .where(Causa.id == causa_id)
        .values(locked_by=None, locked_at=None)
        .execution_options(synchronize_session=False)
    )
    try:
        db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("error unlocking causa id=%s: %s", causa_id, e)
        return False
    return True


def current_fence(db: Session, causa_id: int) -> Optional[int]:
    return db.scalar(select(Causa.lock_fence).where(Causa.id == causa_id))


def find_stuck(db: Session, now: Optional[datetime] = None) -> list[Causa]:
    return list(db.scalars(select(Causa).where(stuck_clause(now)).order_by(Causa.locked_at)))


def count_stuck(db: Session, now: Optional[datetime] = None) -> int:
    return db.scalar(select(func.count(Causa.id)).where(stuck_clause(now))) or 0


def clear_stuck(db: Session, now: Optional[datetime] = None) -> int:
    """Force-release every expired lease. Returns how many were cleared."""
    stmt = (
        update(Causa)
        .where(stuck_clause(now))
        .values(locked_by=None, locked_at=None)
        .execution_options(synchronize_session=False)
    )
    res = db.execute(stmt)
    db.commit()
    logger.info("cleared stuck locks count=%s", res.rowcount)
    return res.rowcount
