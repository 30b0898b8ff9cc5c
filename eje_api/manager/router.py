# eje_api/manager/router.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session
from ..deps import get_db
from ..auth.models import User
from ..auth.schemas import Principal
from ..auth.utils import require_admin, token_or_api_key
from ..shared.config import settings
from . import models as m
from . import schemas as s
from . import service

router = APIRouter(prefix=f"{settings.API_PREFIX}/config", tags=["manager"])

RECENT_ALERTS = 10
RECENT_DAYS = 7
MAX_ALERTS = 50


def _dump(schema, rows) -> list:
    return [schema.model_validate(r).model_dump(mode="json") for r in rows]


def _alerts(pairs) -> list:
    return [
        {"index": i, **s.AlertOut.model_validate(a).model_dump(mode="json")} for i, a in pairs
    ]


def _updates(payload, *nested: str) -> dict:
    updates = payload.model_dump(exclude_none=True)
    for key in nested:
        if key in updates and not updates[key]:
            updates.pop(key)
    if not updates:
        raise HTTPException(400, "No valid fields to update")
    return updates


# ---------- manager ----------
@router.get("/manager")
def get_manager_config(db: Session = Depends(get_db), _: Principal = Depends(token_or_api_key)):
    manager = service.get_manager(db)
    return {
        "success": True,
        "data": {
            "config": manager.config,
            "current_state": manager.current_state,
            "alerts": _alerts(service.indexed_alerts(manager)[-RECENT_ALERTS:]),
            "daily_stats": _dump(s.DailyStatOut, manager.daily_stats[-RECENT_DAYS:]),
        },
    }


@router.get("/manager/full")
def get_manager_config_full(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    manager = service.get_manager(db)
    return {
        "success": True,
        "data": {
            "name": manager.name,
            "config": manager.config,
            "current_state": manager.current_state,
            "history": _dump(s.HistoryEntryOut, manager.history),
            "alerts": _alerts(service.indexed_alerts(manager, include_acknowledged=True)),
            "daily_stats": _dump(s.DailyStatOut, manager.daily_stats),
            "updated_at": manager.updated_at,
        },
    }


@router.patch("/manager")
def update_manager_config(
    payload: s.ManagerConfigUpdate, db: Session = Depends(get_db), _: User = Depends(require_admin)
):
    manager = service.update_config(db, _updates(payload, "worker_names"))
    return {"success": True, "message": "Manager configuration updated", "data": manager.config}


@router.post("/manager/toggle")
def toggle_manager(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    running = service.flip_state(db, "is_running", admin.email)
    return {
        "success": True,
        "message": f"Manager {'started' if running else 'stopped'}",
        "is_running": running,
    }


@router.post("/manager/pause")
def pause_manager(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    paused = service.flip_state(db, "is_paused", admin.email)
    return {
        "success": True,
        "message": f"Manager {'paused' if paused else 'resumed'}",
        "is_paused": paused,
    }


@router.get("/manager/history")
def get_manager_history(
    hours: int = Query(24, ge=1),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    rows = service.history_since(db, hours)
    return {
        "success": True,
        "data": _dump(s.HistoryEntryOut, rows),
        "period": f"last {hours} hours",
        "count": len(rows),
    }


@router.get("/manager/alerts")
def get_alerts(
    acknowledged: bool = Query(False, description="include acknowledged alerts"),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    pairs = service.indexed_alerts(service.get_manager(db), include_acknowledged=acknowledged)
    return {"success": True, "data": _alerts(pairs[-MAX_ALERTS:]), "total": len(pairs)}


@router.post("/manager/alerts/{index}/acknowledge")
def acknowledge_alert(index: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    service.acknowledge_alert(db, index, admin.email or admin.id)
    return {"success": True, "message": "Alert acknowledged"}


@router.get("/manager/daily-stats")
def get_daily_stats(
    days: int = Query(30, ge=1),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    manager = service.get_manager(db)
    return {"success": True, "data": _dump(s.DailyStatOut, manager.daily_stats[-days:])}


# ---------- individual workers ----------
@router.get("/manager/workers")
def get_all_workers_config(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    manager = service.get_manager(db)
    state = manager.current_state or {}
    return {
        "success": True,
        "data": {
            "workers": [service.worker_view(manager, t) for t in m.WORKER_TYPES],
            "global_settings": service.global_settings(manager.config or {}),
            "manager_state": {
                k: state.get(k)
                for k in ("is_running", "is_paused", "last_cycle_at", "cycle_count", "system_resources")
            },
        },
    }


@router.patch("/manager/settings")
def update_global_settings(
    payload: s.GlobalSettingsUpdate, db: Session = Depends(get_db), _: User = Depends(require_admin)
):
    manager = service.update_config(db, _updates(payload), event="settings")
    return {
        "success": True,
        "message": "Global settings updated",
        "data": service.global_settings(manager.config),
    }


@router.get("/manager/worker/{worker_type}")
def get_worker_config(worker_type: str, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    service.check_worker_type(worker_type)
    manager = service.get_manager(db)
    return {
        "success": True,
        "data": {
            **service.worker_view(manager, worker_type),
            "global_settings": service.global_settings(manager.config or {}),
        },
    }


@router.patch("/manager/worker/{worker_type}")
def update_worker_config(
    worker_type: str,
    payload: s.WorkerTypeConfigUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    service.check_worker_type(worker_type)
    updates = _updates(payload, "schedule")
    manager = service.update_config(db, {"workers": {worker_type: updates}}, event="worker-config")
    return {
        "success": True,
        "message": f"{worker_type} worker configuration updated",
        "data": manager.config["workers"][worker_type],
    }


@router.post("/manager/worker/{worker_type}/toggle")
def toggle_worker(worker_type: str, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    service.check_worker_type(worker_type)
    current = service.get_manager(db).config.get("workers", {}).get(worker_type, {})
    enabled = not current.get("enabled", False)
    service.update_config(db, {"workers": {worker_type: {"enabled": enabled}}}, event="worker-toggle")
    return {
        "success": True,
        "message": f"{worker_type} worker {'enabled' if enabled else 'disabled'}",
        "worker_type": worker_type,
        "enabled": enabled,
    }


# ---------- worker run stats ----------
@router.get("/worker-stats")
def get_worker_stats(
    worker_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: Principal = Depends(token_or_api_key),
):
    stmt = select(m.WorkerStats).order_by(m.WorkerStats.worker_type, m.WorkerStats.worker_id)
    # unknown types are ignored, not rejected
    if worker_type in m.WORKER_TYPES:
        stmt = stmt.where(m.WorkerStats.worker_type == worker_type)
    return {"success": True, "data": _dump(s.WorkerStatsOut, db.scalars(stmt).all())}


@router.get("/worker-stats/today")
def get_today_summary(
    worker_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: Principal = Depends(token_or_api_key),
):
    return {"success": True, "data": service.today_summary(db, worker_type)}


@router.get("/worker-stats/{worker_type}/{worker_id}/runs")
def get_run_history(
    worker_type: str,
    worker_id: str,
    limit: int = Query(20, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    result = service.run_history(db, worker_type, worker_id, limit)
    return {
        "success": True,
        "data": {
            "current_run": result["current_run"],
            "run_history": _dump(s.WorkerRunOut, result["runs"]),
        },
    }
