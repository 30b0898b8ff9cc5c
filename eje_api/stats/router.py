# eje_api/stats/router.py
import logging
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.orm import Session
from ..deps import get_db
from ..auth.models import User
from ..auth.schemas import Principal
from ..auth.utils import require_admin, token_or_api_key
from ..causas import schemas as cs
from ..causas.models import Causa
from ..locks import lease
from ..locks.queues import under_error_limit, update_clause, verification_clause
from ..shared.config import settings
from ..shared.pagination import PageParams, build_pagination_meta, page_params
from ..shared.utils import utcnow

router = APIRouter(prefix=f"{settings.API_PREFIX}/worker-stats", tags=["worker-stats"])
logger = logging.getLogger(__name__)

ACTIVITY_LIMIT = 20


def _n(cond):
    return func.sum(case((cond, 1), else_=0))


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0


def _summary(causa: Causa) -> dict:
    return cs.CausaSummaryOut.model_validate(causa).model_dump(mode="json")


@router.get("")
@router.get("/")
def get_stats(db: Session = Depends(get_db), _: Principal = Depends(token_or_api_key)):
    now = utcnow()
    last24h = now - timedelta(hours=24)
    r = db.execute(
        select(
            func.count(Causa.id).label("total"),
            _n(verification_clause()).label("pending_verification"),
            _n(Causa.verified.is_(True)).label("verified"),
            _n(update_clause()).label("pending_details"),
            _n(Causa.details_loaded.is_(True)).label("details_loaded"),
            _n(Causa.error_count > 0).label("with_errors"),
            _n(Causa.is_private.is_(True)).label("private"),
            _n(Causa.is_valid.is_(False)).label("invalid"),
            _n(Causa.locked_by.is_not(None)).label("locked"),
            _n(or_(Causa.verified_at >= last24h, Causa.details_last_update >= last24h)).label(
                "recently_processed"
            ),
        )
    ).one()
    c = {k: int(v or 0) for k, v in r._mapping.items()}

    dist = db.execute(
        select(Causa.error_count, func.count(Causa.id).label("count"))
        .where(Causa.error_count > 0)
        .group_by(Causa.error_count)
        .order_by(Causa.error_count)
    ).all()

    return {
        "success": True,
        "data": {
            "total": c["total"],
            "verification": {
                "pending": c["pending_verification"],
                "completed": c["verified"],
                "rate": _rate(c["verified"], c["total"]),
            },
            "details": {
                "pending": c["pending_details"],
                "completed": c["details_loaded"],
                "rate": _rate(c["details_loaded"], c["verified"]),
            },
            "status": {
                "valid": c["total"] - c["invalid"],
                "invalid": c["invalid"],
                "private": c["private"],
            },
            "processing": {
                "locked": c["locked"],
                "stuck": lease.count_stuck(db, now),
                "recently_processed": c["recently_processed"],
            },
            "errors": {
                "total": c["with_errors"],
                "distribution": [{"error_count": d.error_count, "count": d.count} for d in dist],
            },
        },
    }


@router.get("/activity")
def get_recent_activity(
    hours: int = Query(24, ge=1),
    db: Session = Depends(get_db),
    _: Principal = Depends(token_or_api_key),
):
    since = utcnow() - timedelta(hours=hours)
    verified = db.scalars(
        select(Causa)
        .where(Causa.verified_at >= since)
        .order_by(Causa.verified_at.desc())
        .limit(ACTIVITY_LIMIT)
    ).all()
    updated = db.scalars(
        select(Causa)
        .where(Causa.details_last_update >= since)
        .order_by(Causa.details_last_update.desc())
        .limit(ACTIVITY_LIMIT)
    ).all()
    return {
        "success": True,
        "data": {
            "period": f"last {hours} hours",
            "verified": {"count": len(verified), "documents": [_summary(x) for x in verified]},
            "updated": {"count": len(updated), "documents": [_summary(x) for x in updated]},
        },
    }


@router.get("/eligibility")
def get_eligibility_stats(db: Session = Depends(get_db), _: Principal = Depends(token_or_api_key)):
    """How many causas each worker queue could pick up right now, and why others can't."""
    now = utcnow()
    free = lease.available_clause(now)
    ok = under_error_limit()
    out = {}
    for name, clause in (("verification", verification_clause()), ("update", update_clause())):
        r = db.execute(
            select(
                _n(clause).label("candidates"),
                _n(and_(clause, ok, free)).label("eligible"),
                _n(and_(clause, ok, lease.held_clause(now))).label("locked"),
                _n(and_(clause, ~ok)).label("too_many_errors"),
            )
        ).one()
        out[name] = {k: int(v or 0) for k, v in r._mapping.items()}
    out["max_errors"] = settings.MAX_WORKER_ERRORS
    out["lock_timeout_minutes"] = settings.LOCK_TIMEOUT_MINUTES
    return {"success": True, "data": out}


# ---------- admin ----------
@router.get("/errors")
def get_error_documents(
    pages: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    where = Causa.error_count > 0
    total = db.scalar(select(func.count(Causa.id)).where(where)) or 0
    rows = db.scalars(
        select(Causa)
        .where(where)
        .order_by(Causa.error_count.desc(), Causa.updated_at.desc(), Causa.id.desc())
        .offset(pages.offset)
        .limit(pages.limit)
    ).all()
    return {
        "success": True,
        "data": [_summary(x) for x in rows],
        "pagination": build_pagination_meta(pages.page, pages.limit, total),
    }


@router.get("/stuck")
def get_stuck_documents(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    rows = lease.find_stuck(db)
    return {"success": True, "data": [_summary(x) for x in rows], "count": len(rows)}


@router.post("/clear-stuck")
def clear_stuck_locks(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    cleared = lease.clear_stuck(db)
    return {"success": True, "message": f"Cleared {cleared} stuck locks", "cleared": cleared}


@router.post("/reset-error/{causa_id}")
def reset_error_count(causa_id: int, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    causa = db.get(Causa, causa_id)
    if not causa:
        raise HTTPException(404, "Document not found")
    causa.error_count = 0
    causa.last_error = None
    causa.stuck_since = None
    db.commit()
    logger.info("error count reset id=%s cuij=%s", causa.id, causa.cuij)
    return {
        "success": True,
        "message": "Error count reset",
        "data": {"id": causa.id, "cuij": causa.cuij},
    }
