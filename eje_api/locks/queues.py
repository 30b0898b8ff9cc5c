# eje_api/locks/queues.py
from datetime import datetime
from typing import Optional
from sqlalchemy import and_, select
from sqlalchemy.orm import Session
from ..causas.models import Causa
from ..shared.config import settings
from .lease import available_clause


def verification_clause():
    """Never verified and validity still unknown."""
    return and_(Causa.verified.is_(False), Causa.is_valid.is_(None))


def update_clause():
    """Valid public causas whose details were never loaded."""
    return and_(
        Causa.verified.is_(True),
        Causa.is_valid.is_(True),
        Causa.is_private.is_(False),
        Causa.details_loaded.is_(False),
    )


def under_error_limit():
    return Causa.error_count < settings.MAX_WORKER_ERRORS


def _pending(db: Session, clause, limit: int, now: Optional[datetime]) -> list[Causa]:
    return list(
        db.scalars(
            select(Causa)
            .where(clause, under_error_limit(), available_clause(now))
            .order_by(Causa.created_at.asc(), Causa.id.asc())
            .limit(limit)
        )
    )


def pending_verification(db: Session, limit: int = 10, now: Optional[datetime] = None) -> list[Causa]:
    return _pending(db, verification_clause(), limit, now)


def pending_update(db: Session, limit: int = 10, now: Optional[datetime] = None) -> list[Causa]:
    return _pending(db, update_clause(), limit, now)
