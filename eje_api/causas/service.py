# eje_api/causas/service.py
from __future__ import annotations
import logging
from typing import Any, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from ..shared.utils import parse_cuij, utcnow
from . import models as m

logger = logging.getLogger(__name__)

# writable on create/update; everything else is owned by workers or the lease
WRITABLE_FIELDS = (
    "cuij",
    "numero",
    "anio",
    "caratula",
    "juzgado",
    "objeto",
    "estado",
    "fecha_inicio",
    "source",
    "search_term",
    "verified",
    "verified_at",
    "is_valid",
    "is_private",
    "details_loaded",
    "details_last_update",
    "error_count",
    "last_error",
    "movimientos",
    "movimientos_count",
    "intervinientes",
    "causas_relacionadas",
    "is_pivot",
)


def history_entry(
    update_type: str,
    *,
    movimientos_total: int = 0,
    movimientos_added: int = 0,
    success: bool = True,
    source: str = "api",
    **details: Any,
) -> dict:
    return {
        "timestamp": utcnow().isoformat(),
        "source": source,
        "update_type": update_type,
        "success": success,
        "movimientos_added": movimientos_added,
        "movimientos_total": movimientos_total,
        "details": {k: v for k, v in details.items() if v is not None},
    }


def push_history(causa: m.Causa, entry: dict) -> None:
    # JSON columns only notice reassignment
    causa.update_history = [*(causa.update_history or []), entry]


def find_causa(
    db: Session,
    causa_id: Optional[int] = None,
    cuij: Optional[str] = None,
    numero: Optional[int] = None,
    anio: Optional[int] = None,
) -> Optional[m.Causa]:
    """causa_id first, then exact cuij, then numero+anio."""
    if causa_id:
        return db.get(m.Causa, causa_id)
    if cuij:
        return db.scalar(select(m.Causa).where(m.Causa.cuij == cuij))
    if numero and anio:
        return db.scalar(
            select(m.Causa).where(m.Causa.numero == numero, m.Causa.anio == anio).order_by(m.Causa.id)
        )
    return None


def apply_fields(causa: m.Causa, data: dict) -> None:
    for k in WRITABLE_FIELDS:
        if k in data:
            setattr(causa, k, data[k])
    if "movimientos" in data and "movimientos_count" not in data:
        causa.movimientos_count = len(data["movimientos"] or [])


def set_pivot_candidates(db: Session, pivot: m.Causa, candidate_ids: list[int]) -> None:
    existing = {link.causa_id for link in pivot.pivot_links}
    for cid in candidate_ids:
        if cid == pivot.id or cid in existing:
            continue
        if not db.get(m.Causa, cid):
            continue
        pivot.pivot_links.append(m.CausaPivotLink(causa_id=cid))
        existing.add(cid)


def upsert_causa(db: Session, data: dict) -> tuple[m.Causa, bool]:
    """
    Existing causa (by cuij, else numero+anio) is updated in place.
    Returns (causa, created).
    """
    candidates = data.pop("pivot_candidate_ids", None)
    if data.get("cuij"):
        existing = find_causa(db, cuij=data["cuij"])
    else:
        existing = find_causa(db, numero=data.get("numero"), anio=data.get("anio"))

    if existing:
        apply_fields(existing, data)
        if candidates:
            set_pivot_candidates(db, existing, candidates)
        db.commit()
        db.refresh(existing)
        logger.info("causa updated id=%s cuij=%s", existing.id, existing.cuij)
        return existing, False

    for key, value in (parse_cuij(data.get("cuij")) or {}).items():
        if not data.get(key):
            data[key] = value

    causa = m.Causa(source="app")
    apply_fields(causa, data)
    if not causa.source:
        causa.source = "app"
    db.add(causa)
    db.flush()
    if candidates:
        causa.is_pivot = True
        set_pivot_candidates(db, causa, candidates)
    db.commit()
    db.refresh(causa)
    logger.info("causa created id=%s cuij=%s", causa.id, causa.cuij)
    return causa, True


def _link_folder(causa: m.Causa, folder_id: str) -> None:
    if folder_id not in causa.folder_ids:
        causa.folders.append(m.CausaFolder(folder_id=folder_id))


def _link_user(causa: m.Causa, user_id: Optional[str]) -> None:
    if user_id and user_id not in causa.user_causa_ids:
        causa.users.append(m.CausaUser(user_id=user_id))


def associate_folder(
    db: Session,
    *,
    folder_id: str,
    user_id: Optional[str],
    causa_id: Optional[int] = None,
    cuij: Optional[str] = None,
    numero: Optional[int] = None,
    anio: Optional[int] = None,
    search_term: Optional[str] = None,
) -> dict:
    """Link folder (and caller) to a causa, creating a pending one when none matches."""
    causa = find_causa(db, causa_id=causa_id, cuij=cuij, numero=numero, anio=anio)

    if causa:
        _link_folder(causa, folder_id)
        _link_user(causa, user_id)
        push_history(
            causa,
            history_entry(
                "link",
                movimientos_total=len(causa.movimientos or []),
                folder_id=folder_id,
                user_id=user_id,
                search_term=search_term,
            ),
        )
        db.commit()
        logger.info("folder associated to existing causa id=%s folder=%s", causa.id, folder_id)
        return {"success": True, "created": False, "causa_id": causa.id, "cuij": causa.cuij}

    parsed = parse_cuij(cuij) or {}
    numero = numero or parsed.get("numero")
    anio = anio or parsed.get("anio")
    label = search_term or cuij or f"{numero}/{anio}"
    causa = m.Causa(
        cuij=cuij or f"PENDING-{numero}/{anio}",
        numero=numero or 0,
        anio=anio or 0,
        caratula=f"Pendiente de verificación: {label}",
        source="app",
        search_term=search_term,
        verified=False,
        is_valid=None,
        details_loaded=False,
        update_history=[
            history_entry(
                "link",
                folder_id=folder_id,
                user_id=user_id,
                search_term=search_term,
                message="Causa created from folder association",
            )
        ],
    )
    causa.folders.append(m.CausaFolder(folder_id=folder_id))
    _link_user(causa, user_id)
    db.add(causa)
    db.commit()
    db.refresh(causa)
    logger.info("new causa created and folder associated id=%s folder=%s", causa.id, folder_id)
    return {"success": True, "created": True, "causa_id": causa.id, "cuij": causa.cuij}


def dissociate_folder(db: Session, *, causa_id: int, folder_id: str, user_id: Optional[str]) -> dict:
    causa = db.get(m.Causa, causa_id)
    if not causa:
        return {"success": False, "message": "Causa not found"}

    causa.folders = [f for f in causa.folders if f.folder_id != folder_id]
    push_history(
        causa,
        history_entry(
            "unlink",
            movimientos_total=len(causa.movimientos or []),
            folder_id=folder_id,
            user_id=user_id,
        ),
    )
    db.commit()
    logger.info("folder dissociated from causa id=%s folder=%s", causa_id, folder_id)
    return {"success": True, "causa_id": causa_id, "cuij": causa.cuij}


def find_by_folder(db: Session, folder_id: str) -> Optional[m.Causa]:
    return db.scalar(
        select(m.Causa)
        .join(m.CausaFolder, m.CausaFolder.causa_id == m.Causa.id)
        .where(m.CausaFolder.folder_id == folder_id)
        .order_by(m.Causa.id)
        .limit(1)
    )


def recompute_update_flag(causa: m.Causa) -> None:
    causa.update_enabled = any(p.enabled for p in causa.preferences)


def update_user_preference(db: Session, *, causa_id: int, user_id: str, enabled: bool) -> dict:
    causa = db.get(m.Causa, causa_id)
    if not causa:
        return {"success": False, "message": "Causa not found"}

    pref = next((p for p in causa.preferences if p.user_id == user_id), None)
    if pref:
        pref.enabled = enabled
    else:
        causa.preferences.append(m.CausaUserPreference(user_id=user_id, enabled=enabled))
    recompute_update_flag(causa)
    db.commit()
    logger.info("user update preference causa=%s user=%s enabled=%s", causa_id, user_id, enabled)
    return {"success": True, "causa_id": causa_id, "update_enabled": causa.update_enabled}
