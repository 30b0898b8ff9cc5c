# eje_api/service/router.py
import logging
from typing import Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from ..deps import get_db
from ..auth.schemas import Principal
from ..auth.utils import require_api_key, verify_token
from ..causas import schemas as cs
from ..causas import service
from ..locks import lease, queues
from ..locks.schemas import LockIn, LockOut, UnlockOut
from ..shared.config import settings
from . import schemas as s

router = APIRouter(prefix=f"{settings.API_PREFIX}/causas-eje-service", tags=["causas-eje-service"])
logger = logging.getLogger(__name__)


# ---------- user routes (JWT) ----------
@router.post("/associate-folder")
def associate_folder(
    payload: s.AssociateFolderIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(verify_token),
):
    if not payload.folder_id:
        raise HTTPException(400, "folder_id is required")
    if not payload.causa_id and not payload.cuij and not (payload.numero and payload.anio):
        raise HTTPException(400, "causa_id, cuij, or numero/anio is required")

    result = service.associate_folder(
        db,
        folder_id=payload.folder_id,
        user_id=principal.user_id,
        causa_id=payload.causa_id,
        cuij=payload.cuij,
        numero=payload.numero,
        anio=payload.anio,
        search_term=payload.search_term,
    )
    message = (
        "Causa created and folder associated"
        if result["created"]
        else "Folder associated to existing causa"
    )
    return {**result, "message": message}


@router.delete("/dissociate-folder")
def dissociate_folder(
    payload: s.DissociateFolderIn = Body(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(verify_token),
):
    if not payload.causa_id or not payload.folder_id:
        raise HTTPException(400, "causa_id and folder_id are required")

    result = service.dissociate_folder(
        db, causa_id=payload.causa_id, folder_id=payload.folder_id, user_id=principal.user_id
    )
    if not result["success"]:
        raise HTTPException(404, result["message"])
    return {**result, "message": "Folder dissociated from causa"}


@router.get("/by-folder/{folder_id}")
def find_by_folder(folder_id: str, db: Session = Depends(get_db), _: Principal = Depends(verify_token)):
    causa = service.find_by_folder(db, folder_id)
    if not causa:
        raise HTTPException(404, "No causa found for this folder")
    return {"success": True, "data": cs.CausaOut.model_validate(causa).model_dump(mode="json")}


@router.patch("/update-preference")
def update_user_preference(
    payload: s.UpdatePreferenceIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(verify_token),
):
    if not payload.causa_id or payload.enabled is None:
        raise HTTPException(400, "causa_id and enabled are required")

    result = service.update_user_preference(
        db, causa_id=payload.causa_id, user_id=principal.user_id, enabled=payload.enabled
    )
    if not result["success"]:
        raise HTTPException(404, result["message"])
    state = "enabled" if payload.enabled else "disabled"
    return {**result, "message": f"Updates {state} for this causa"}


# ---------- worker routes (API key) ----------
def _queue_response(rows) -> dict:
    data = [cs.CausaOut.model_validate(c).model_dump(mode="json") for c in rows]
    return {"success": True, "data": data, "count": len(data)}


@router.get("/pending-verification")
def get_pending_verification(
    limit: int = Query(10, ge=1, le=500),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_api_key),
):
    return _queue_response(queues.pending_verification(db, limit))


@router.get("/pending-update")
def get_pending_update(
    limit: int = Query(10, ge=1, le=500),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_api_key),
):
    return _queue_response(queues.pending_update(db, limit))


@router.post("/lock/{causa_id}", response_model=LockOut)
def lock_causa(
    causa_id: int,
    payload: Optional[LockIn] = None,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_api_key),
):
    worker_id = payload.worker_id if payload else None
    if not worker_id:
        raise HTTPException(400, "worker_id is required")

    if lease.acquire(db, causa_id, worker_id):
        fence = lease.current_fence(db, causa_id)
        logger.info("causa locked id=%s worker=%s fence=%s", causa_id, worker_id, fence)
        return LockOut(success=True, message="Causa locked", fence=fence)
    return LockOut(success=False, message="Could not lock causa (already locked or not found)")


@router.post("/unlock/{causa_id}", response_model=UnlockOut)
def unlock_causa(causa_id: int, db: Session = Depends(get_db), _: Principal = Depends(require_api_key)):
    unlocked = lease.release(db, causa_id)
    return UnlockOut(
        success=unlocked, message="Causa unlocked" if unlocked else "Error unlocking causa"
    )
