# eje_api/causas/filters.py
from datetime import datetime
from typing import Optional
from fastapi import Query
from sqlalchemy import select
from ..shared.utils import clean_cuij_for_search, sanitize_params
from .models import Causa, CausaFolder, CausaUser

CONTAINS_FIELDS = ("cuij", "caratula", "juzgado", "objeto", "search_term")
EXACT_FIELDS = ("numero", "anio", "estado", "source")
FLAG_FIELDS = {
    "verified": Causa.verified,
    "is_valid": Causa.is_valid,
    "is_private": Causa.is_private,
    "details_loaded": Causa.details_loaded,
    "update": Causa.update_enabled,
    "is_pivot": Causa.is_pivot,
    "resolved": Causa.resolved,
}
SORTABLE = {
    "created_at",
    "updated_at",
    "numero",
    "anio",
    "cuij",
    "caratula",
    "fecha_inicio",
    "error_count",
    "verified_at",
    "details_last_update",
}
DEFAULT_SORT = "created_at"


def search_params(
    cuij: Optional[str] = Query(None),
    numero: Optional[int] = Query(None),
    anio: Optional[int] = Query(None),
    caratula: Optional[str] = Query(None),
    juzgado: Optional[str] = Query(None),
    objeto: Optional[str] = Query(None),
    estado: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    search_term: Optional[str] = Query(None),
    verified: Optional[bool] = Query(None),
    is_valid: Optional[bool] = Query(None),
    is_private: Optional[bool] = Query(None),
    details_loaded: Optional[bool] = Query(None),
    update: Optional[bool] = Query(None),
    is_pivot: Optional[bool] = Query(None),
    resolved: Optional[bool] = Query(None),
    fecha_inicio_from: Optional[datetime] = Query(None),
    fecha_inicio_to: Optional[datetime] = Query(None),
    folder_id: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
) -> dict:
    return sanitize_params(dict(locals()))


def build_causa_filter(params: dict) -> list:
    """Query params -> list of WHERE clauses (ANDed by the caller)."""
    clauses = []
    for f in CONTAINS_FIELDS:
        value = clean_cuij_for_search(params.get(f)) if f == "cuij" else params.get(f)
        if value:
            clauses.append(getattr(Causa, f).ilike(f"%{value}%"))
    for f in EXACT_FIELDS:
        if params.get(f) is not None:
            clauses.append(getattr(Causa, f) == params[f])
    for f, col in FLAG_FIELDS.items():
        if params.get(f) is not None:
            clauses.append(col.is_(bool(params[f])))

    if params.get("fecha_inicio_from"):
        clauses.append(Causa.fecha_inicio >= params["fecha_inicio_from"])
    if params.get("fecha_inicio_to"):
        clauses.append(Causa.fecha_inicio <= params["fecha_inicio_to"])

    if params.get("folder_id"):
        clauses.append(
            Causa.id.in_(
                select(CausaFolder.causa_id).where(CausaFolder.folder_id == params["folder_id"])
            )
        )
    if params.get("user_id"):
        clauses.append(
            Causa.id.in_(select(CausaUser.causa_id).where(CausaUser.user_id == params["user_id"]))
        )
    return clauses


def build_sort(sort_by: Optional[str], sort_order: Optional[str]):
    field = sort_by if sort_by in SORTABLE else DEFAULT_SORT
    col = getattr(Causa, field)
    # tie-break on id so pages stay stable
    if sort_order == "asc":
        return [col.asc(), Causa.id.asc()]
    return [col.desc(), Causa.id.desc()]
