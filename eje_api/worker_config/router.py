# eje_api/worker_config/router.py
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from ..deps import get_db
from ..auth.models import User
from ..auth.schemas import Principal
from ..auth.utils import require_admin, token_or_api_key
from ..shared.config import settings
from ..shared.singleton import get_or_create as get_or_create_named
from . import models as m
from . import schemas as s

router = APIRouter(prefix=f"{settings.API_PREFIX}/config", tags=["config"])
logger = logging.getLogger(__name__)

DEFAULT_NAME = "default"
NESTED = ("schedule", "rate_limit")


def get_or_create(db: Session) -> m.WorkerConfig:
    return get_or_create_named(db, m.WorkerConfig, DEFAULT_NAME)


def _out(cfg: m.WorkerConfig) -> dict:
    return s.WorkerConfigOut.model_validate(cfg).model_dump(mode="json")


@router.get("")
@router.get("/")
def get_config(db: Session = Depends(get_db), _: Principal = Depends(token_or_api_key)):
    return {"success": True, "data": _out(get_or_create(db))}


@router.patch("")
@router.patch("/")
def update_config(
    payload: s.WorkerConfigUpdate, db: Session = Depends(get_db), _: User = Depends(require_admin)
):
    updates = payload.model_dump(exclude_none=True)
    for key in NESTED:
        if key in updates and not updates[key]:
            updates.pop(key)
    if not updates:
        raise HTTPException(400, "No valid fields to update")

    cfg = get_or_create(db)
    for key, value in updates.items():
        if key in NESTED:
            # partial nested update keeps the other keys
            setattr(cfg, key, {**(getattr(cfg, key) or {}), **value})
        else:
            setattr(cfg, key, value)
    db.commit()
    db.refresh(cfg)
    logger.info("worker configuration updated fields=%s", sorted(updates))
    return {"success": True, "message": "Configuration updated", "data": _out(cfg)}


@router.post("/toggle")
def toggle_enabled(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    cfg = get_or_create(db)
    cfg.enabled = not cfg.enabled
    db.commit()
    state = "enabled" if cfg.enabled else "disabled"
    logger.info("worker enabled state toggled enabled=%s", cfg.enabled)
    return {"success": True, "message": f"Workers {state}", "enabled": cfg.enabled}
