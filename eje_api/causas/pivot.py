# eje_api/causas/pivot.py
from __future__ import annotations
import logging
from fastapi import HTTPException
from sqlalchemy.orm import Session
from ..shared.utils import utcnow
from . import models as m
from .service import history_entry, push_history, recompute_update_flag

logger = logging.getLogger(__name__)


def get_pivot(db: Session, pivot_id: int) -> m.Causa:
    pivot = db.get(m.Causa, pivot_id)
    if not pivot:
        raise HTTPException(404, "Causa not found")
    if not pivot.is_pivot:
        raise HTTPException(400, "Causa is not a pivot")
    return pivot


def linked_causas(db: Session, pivot_id: int) -> list[m.Causa]:
    pivot = get_pivot(db, pivot_id)
    return [link.causa for link in pivot.pivot_links if link.causa is not None]


def resolve_pivot(db: Session, pivot_id: int, target_id: int, resolved_by: str | None = None) -> dict:
    """
    Merge a pivot into its canonical causa.

    Folder links, user links and update preferences move from the pivot to
    the target (pairs the target already has are dropped), then the pivot is
    marked resolved and points at the target. One commit.
    """
    pivot = get_pivot(db, pivot_id)
    if pivot.resolved:
        raise HTTPException(400, f"Pivot already resolved into {pivot.resolved_to_id}")
    if target_id == pivot.id:
        raise HTTPException(400, "A pivot cannot be resolved into itself")

    target = db.get(m.Causa, target_id)
    if not target:
        raise HTTPException(404, "Target causa not found")
    candidate_ids = {link.causa_id for link in pivot.pivot_links}
    if candidate_ids and target_id not in candidate_ids:
        raise HTTPException(400, "Target is not one of the pivot's linked causas")

    moved_folders = []
    for link in list(pivot.folders):
        pivot.folders.remove(link)
        if link.folder_id not in target.folder_ids:
            target.folders.append(m.CausaFolder(folder_id=link.folder_id))
            moved_folders.append(link.folder_id)

    moved_users = []
    for link in list(pivot.users):
        pivot.users.remove(link)
        if link.user_id not in target.user_causa_ids:
            target.users.append(m.CausaUser(user_id=link.user_id))
            moved_users.append(link.user_id)

    target_prefs = {p.user_id: p for p in target.preferences}
    for pref in list(pivot.preferences):
        pivot.preferences.remove(pref)
        current = target_prefs.get(pref.user_id)
        if current is None:
            target.preferences.append(
                m.CausaUserPreference(user_id=pref.user_id, enabled=pref.enabled)
            )
        elif pref.enabled and not current.enabled:
            current.enabled = True
    recompute_update_flag(target)
    recompute_update_flag(pivot)

    push_history(
        target,
        history_entry(
            "pivot-resolve",
            movimientos_total=len(target.movimientos or []),
            pivot_id=pivot.id,
            folders=moved_folders,
            users=moved_users,
            resolved_by=resolved_by,
        ),
    )
    pivot.resolved = True
    pivot.resolved_at = utcnow()
    pivot.resolved_to_id = target.id
    db.commit()

    logger.info(
        "pivot resolved pivot=%s target=%s folders=%s users=%s",
        pivot.id,
        target.id,
        len(moved_folders),
        len(moved_users),
    )
    return {
        "pivot_id": pivot.id,
        "target_id": target.id,
        "cuij": target.cuij,
        "folders_moved": moved_folders,
        "users_moved": moved_users,
    }
