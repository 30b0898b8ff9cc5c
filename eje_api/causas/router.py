# eje_api/causas/router.py
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy import and_, case, func, select, true
from sqlalchemy.orm import Session
from ..deps import get_db
from ..auth.schemas import Principal
from ..auth.models import User
from ..auth.utils import require_admin, token_or_api_key, verify_token
from ..shared.config import settings
from ..shared.pagination import PageParams, build_pagination_meta, page_params
from ..shared.utils import clean_cuij_for_search
from . import models as m
from . import schemas as s
from .filters import build_causa_filter, build_sort, search_params
from .pivot import linked_causas, resolve_pivot
from .service import apply_fields, upsert_causa

router = APIRouter(prefix=f"{settings.API_PREFIX}/causas-eje", tags=["causas-eje"])
logger = logging.getLogger(__name__)


def _out(causa: m.Causa) -> dict:
    return s.CausaDetailOut.model_validate(causa).model_dump(mode="json")


def _summary(causa: m.Causa) -> dict:
    return s.CausaSummaryOut.model_validate(causa).model_dump(mode="json")


def _get_or_404(db: Session, causa_id: int) -> m.Causa:
    causa = db.get(m.Causa, causa_id)
    if not causa:
        raise HTTPException(404, "Causa not found")
    return causa


@router.get("/stats")
def get_stats(db: Session = Depends(get_db), _: Principal = Depends(token_or_api_key)):
    def n(cond):
        return func.sum(case((cond, 1), else_=0))

    row = db.execute(
        select(
            func.count(m.Causa.id).label("total"),
            n(m.Causa.verified.is_(True)).label("verified"),
            n(m.Causa.is_valid.is_(True)).label("valid"),
            n(m.Causa.is_private.is_(True)).label("private"),
            n(m.Causa.details_loaded.is_(True)).label("details_loaded"),
            n(and_(m.Causa.verified.is_(False), m.Causa.is_valid.is_(None))).label(
                "pending_verification"
            ),
            n(
                and_(
                    m.Causa.verified.is_(True),
                    m.Causa.is_valid.is_(True),
                    m.Causa.details_loaded.is_(False),
                )
            ).label("pending_details"),
            n(m.Causa.error_count > 0).label("with_errors"),
        )
    ).one()

    estados = db.execute(
        select(m.Causa.estado, func.count(m.Causa.id).label("count"))
        .where(m.Causa.estado.is_not(None))
        .group_by(m.Causa.estado)
        .order_by(func.count(m.Causa.id).desc())
    ).all()

    recent = db.scalars(
        select(m.Causa).order_by(m.Causa.updated_at.desc(), m.Causa.id.desc()).limit(5)
    ).all()

    data = {k: int(v or 0) for k, v in row._mapping.items()}
    data["estado_distribution"] = [{"estado": e.estado, "count": e.count} for e in estados]
    data["recent_activity"] = [_summary(c) for c in recent]
    return {"success": True, "data": data}


def _search(
    params: dict,
    pages: PageParams,
    sort_by: Optional[str],
    sort_order: Optional[str],
    db: Session,
):
    where = and_(true(), *build_causa_filter(params))
    total = db.scalar(select(func.count(m.Causa.id)).where(where)) or 0
    rows = db.scalars(
        select(m.Causa)
        .where(where)
        .order_by(*build_sort(sort_by, sort_order))
        .offset(pages.offset)
        .limit(pages.limit)
    ).all()
    return {
        "success": True,
        "data": [_out(c) for c in rows],
        "pagination": build_pagination_meta(pages.page, pages.limit, total),
    }


@router.get("/buscar")
@router.get("/search")
def search_causas(
    params: dict = Depends(search_params),
    pages: PageParams = Depends(page_params),
    sort_by: Optional[str] = Query(None),
    sort_order: Optional[s.SortOrder] = Query(None),
    db: Session = Depends(get_db),
    _: Principal = Depends(token_or_api_key),
):
    return _search(params, pages, sort_by, sort_order, db)


@router.get("/folder/{folder_id}")
def find_by_folder_id(
    folder_id: str, db: Session = Depends(get_db), _: Principal = Depends(verify_token)
):
    rows = db.scalars(
        select(m.Causa)
        .join(m.CausaFolder, m.CausaFolder.causa_id == m.Causa.id)
        .where(m.CausaFolder.folder_id == folder_id)
        .order_by(m.Causa.id)
    ).all()
    return {"success": True, "data": [_out(c) for c in rows], "count": len(rows)}


@router.get("/user/{user_id}")
def find_by_user_id(
    user_id: str,
    pages: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    _: Principal = Depends(verify_token),
):
    return _search({"user_id": user_id}, pages, "updated_at", "desc", db)


@router.get("/cuij/{cuij:path}")
def find_by_cuij(cuij: str, db: Session = Depends(get_db), _: Principal = Depends(token_or_api_key)):
    term = clean_cuij_for_search(cuij)
    if not term:
        raise HTTPException(400, "CUIJ is required")
    causa = db.scalar(
        select(m.Causa).where(m.Causa.cuij.ilike(f"%{term}%")).order_by(m.Causa.id).limit(1)
    )
    if not causa:
        raise HTTPException(404, "Causa not found")
    return {"success": True, "data": _out(causa)}


@router.get("/id/{causa_id}")
def find_by_id(causa_id: int, db: Session = Depends(get_db), _: Principal = Depends(token_or_api_key)):
    return {"success": True, "data": _out(_get_or_404(db, causa_id))}


@router.get("/{causa_id}/movimientos")
def get_movimientos(
    causa_id: int,
    pages: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
    _: Principal = Depends(verify_token),
):
    causa = _get_or_404(db, causa_id)
    movimientos = causa.movimientos or []
    return {
        "success": True,
        "data": movimientos[pages.offset : pages.offset + pages.limit],
        "pagination": build_pagination_meta(pages.page, pages.limit, len(movimientos)),
        "cuij": causa.cuij,
    }


@router.get("/{causa_id}/intervinientes")
def get_intervinientes(
    causa_id: int, db: Session = Depends(get_db), _: Principal = Depends(verify_token)
):
    causa = _get_or_404(db, causa_id)
    return {"success": True, "data": causa.intervinientes or [], "cuij": causa.cuij}


@router.get("/{causa_id}/relacionadas")
def get_causas_relacionadas(
    causa_id: int, db: Session = Depends(get_db), _: Principal = Depends(verify_token)
):
    causa = _get_or_404(db, causa_id)
    return {"success": True, "data": causa.causas_relacionadas or [], "cuij": causa.cuij}


# ---------- pivot ----------
@router.get("/{causa_id}/linked-causas")
def get_linked_causas(
    causa_id: int, db: Session = Depends(get_db), _: Principal = Depends(verify_token)
):
    rows = linked_causas(db, causa_id)
    return {"success": True, "data": [_out(c) for c in rows], "count": len(rows)}


@router.post("/{causa_id}/resolve")
def resolve(
    causa_id: int,
    payload: s.PivotResolveIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    result = resolve_pivot(db, causa_id, payload.target_id, resolved_by=admin.id)
    return {"success": True, "message": "Pivot resolved", "data": result}


@router.get("/{number}/{year}")
def find_by_number_and_year(
    number: int, year: int, db: Session = Depends(get_db), _: Principal = Depends(token_or_api_key)
):
    causa = db.scalar(
        select(m.Causa).where(m.Causa.numero == number, m.Causa.anio == year).order_by(m.Causa.id)
    )
    if not causa:
        raise HTTPException(404, "Causa not found")
    return {"success": True, "data": _out(causa)}


# ---------- admin ----------
@router.post("")
@router.post("/")
def create_causa(
    payload: s.CausaCreate, db: Session = Depends(get_db), _: User = Depends(require_admin)
):
    data = payload.model_dump(exclude_none=True)
    if not data.get("cuij") and not (data.get("numero") and data.get("anio")):
        raise HTTPException(400, "CUIJ or numero/anio is required")

    causa, created = upsert_causa(db, data)
    body = {
        "success": True,
        "message": "Causa created" if created else "Causa updated",
        "data": _out(causa),
        "created": created,
    }
    return JSONResponse(status_code=201 if created else 200, content=jsonable_encoder(body))


@router.patch("/{causa_id}")
def update_causa(
    causa_id: int,
    payload: s.CausaUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    causa = _get_or_404(db, causa_id)
    data = payload.model_dump(exclude_unset=True)
    data.pop("pivot_candidate_ids", None)
    apply_fields(causa, data)
    db.commit()
    db.refresh(causa)
    logger.info("causa updated id=%s cuij=%s", causa.id, causa.cuij)
    return {"success": True, "message": "Causa updated", "data": _out(causa)}


@router.delete("/{causa_id}")
def delete_causa(causa_id: int, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    causa = _get_or_404(db, causa_id)
    cuij = causa.cuij
    db.delete(causa)
    db.commit()
    logger.info("causa deleted id=%s cuij=%s", causa_id, cuij)
    return {"success": True, "message": "Causa deleted", "data": {"id": causa_id, "cuij": cuij}}
