# eje_api/manager/service.py
from __future__ import annotations
import copy
import logging
from datetime import datetime, timedelta
from typing import Optional
from fastapi import HTTPException
from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session
from ..shared.singleton import get_or_create
from ..shared.utils import utcnow
from . import models as m

logger = logging.getLogger(__name__)

GLOBAL_SETTING_KEYS = (
    "check_interval",
    "lock_timeout_minutes",
    "update_threshold_hours",
    "cpu_threshold",
    "memory_threshold",
    "work_start_hour",
    "work_end_hour",
    "work_days",
    "timezone",
)
SCHEDULE_KEYS = ("work_start_hour", "work_end_hour", "work_days")


def get_manager(db: Session) -> m.ManagerConfig:
    return get_or_create(db, m.ManagerConfig, m.MANAGER_NAME)


def check_worker_type(worker_type: str) -> str:
    if worker_type not in m.WORKER_TYPES:
        raise HTTPException(400, "Invalid worker type. Must be verification, update, or stuck")
    return worker_type


def deep_merge(base: dict, updates: dict) -> dict:
    """New dict: nested dicts merge key by key, everything else is replaced."""
    out = copy.deepcopy(base or {})
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def record_event(manager: m.ManagerConfig, event: str, **details) -> None:
    manager.history.append(m.ManagerHistoryEntry(event=event, details=details))


def update_config(db: Session, updates: dict, *, event: str = "config") -> m.ManagerConfig:
    manager = get_manager(db)
    # JSON columns only notice reassignment
    manager.config = deep_merge(manager.config, updates)
    record_event(manager, event, fields=sorted(updates))
    db.commit()
    db.refresh(manager)
    logger.info("manager configuration updated event=%s fields=%s", event, sorted(updates))
    return manager


def flip_state(db: Session, key: str, user: Optional[str] = None) -> bool:
    """Toggle a boolean in ``current_state`` and log it to history. Returns the new value."""
    manager = get_manager(db)
    value = not (manager.current_state or {}).get(key, False)
    manager.current_state = deep_merge(manager.current_state, {key: value})
    record_event(manager, key, value=value, by=user)
    db.commit()
    logger.info("manager state changed %s=%s by=%s", key, value, user)
    return value


def global_settings(config: dict) -> dict:
    return {k: config.get(k) for k in GLOBAL_SETTING_KEYS}


def effective_schedule(config: dict, worker_type: str) -> dict:
    schedule = config.get("workers", {}).get(worker_type, {}).get("schedule") or {}
    if schedule.get("use_global_schedule", True):
        return {
            **{k: config.get(k) for k in SCHEDULE_KEYS},
            "use_global_schedule": True,
            "source": "global",
        }
    return {
        **{k: schedule.get(k) for k in SCHEDULE_KEYS},
        "use_global_schedule": False,
        "source": "worker-specific",
    }


def worker_view(manager: m.ManagerConfig, worker_type: str) -> dict:
    config = manager.config or {}
    return {
        "worker_type": worker_type,
        "config": config.get("workers", {}).get(worker_type, {}),
        "status": (manager.current_state or {}).get("workers", {}).get(worker_type, {}),
        "effective_schedule": effective_schedule(config, worker_type),
    }


def history_since(db: Session, hours: int) -> list[m.ManagerHistoryEntry]:
    since = utcnow() - timedelta(hours=hours)
    return list(
        db.scalars(
            select(m.ManagerHistoryEntry)
            .join(m.ManagerConfig)
            .where(m.ManagerConfig.name == m.MANAGER_NAME, m.ManagerHistoryEntry.timestamp >= since)
            .order_by(m.ManagerHistoryEntry.timestamp, m.ManagerHistoryEntry.id)
        )
    )


def indexed_alerts(manager: m.ManagerConfig, include_acknowledged: bool = False) -> list[tuple[int, m.ManagerAlert]]:
    """(position in the full alert list, alert) pairs; the position is what acknowledge takes."""
    return [
        (i, a) for i, a in enumerate(manager.alerts) if include_acknowledged or not a.acknowledged
    ]


def acknowledge_alert(db: Session, index: int, by: str) -> m.ManagerAlert:
    manager = get_manager(db)
    if index < 0 or index >= len(manager.alerts):
        raise HTTPException(404, "Alert not found")
    alert = manager.alerts[index]
    alert.acknowledged = True
    alert.acknowledged_at = utcnow()
    alert.acknowledged_by = by
    db.commit()
    logger.info("alert acknowledged index=%s by=%s", index, by)
    return alert


def today_start(now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()).replace(hour=0, minute=0, second=0, microsecond=0)


def today_summary(db: Session, worker_type: Optional[str] = None) -> dict:
    start = today_start()
    stmt = (
        select(
            m.WorkerStats.worker_type,
            func.count(m.WorkerRun.id).label("runs"),
            func.count(distinct(m.WorkerStats.worker_id)).label("workers"),
            func.coalesce(func.sum(m.WorkerRun.processed), 0).label("processed"),
            func.coalesce(func.sum(m.WorkerRun.success), 0).label("success"),
            func.coalesce(func.sum(m.WorkerRun.errors), 0).label("errors"),
        )
        .join(m.WorkerRun, m.WorkerRun.stats_id == m.WorkerStats.id)
        .where(m.WorkerRun.started_at >= start)
        .group_by(m.WorkerStats.worker_type)
    )
    if worker_type in m.WORKER_TYPES:
        stmt = stmt.where(m.WorkerStats.worker_type == worker_type)

    by_type = {}
    for row in db.execute(stmt):
        by_type[row.worker_type] = {
            "runs": row.runs,
            "workers": row.workers,
            "processed": int(row.processed),
            "success": int(row.success),
            "errors": int(row.errors),
        }
    totals = {
        k: sum(t[k] for t in by_type.values()) for k in ("runs", "processed", "success", "errors")
    }
    return {"date": start.date().isoformat(), "totals": totals, "by_type": by_type}


def run_history(db: Session, worker_type: str, worker_id: str, limit: int) -> dict:
    stats = db.scalar(
        select(m.WorkerStats).where(
            m.WorkerStats.worker_type == worker_type, m.WorkerStats.worker_id == worker_id
        )
    )
    if not stats:
        return {"current_run": None, "runs": []}
    runs = db.scalars(
        select(m.WorkerRun)
        .where(m.WorkerRun.stats_id == stats.id)
        .order_by(m.WorkerRun.started_at.desc(), m.WorkerRun.id.desc())
        .limit(limit)
    ).all()
    return {"current_run": stats.current_run, "runs": list(runs)}
