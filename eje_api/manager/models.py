from __future__ import annotations
import copy
import datetime as dt
from datetime import datetime
from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..shared.db import Base
from ..shared.utils import utcnow

MANAGER_NAME = "eje-manager"
WORKER_TYPES = ("verification", "update", "stuck")


def default_worker_config(worker_type: str) -> dict:
    return {
        "enabled": worker_type != "stuck",
        "min_workers": 0,
        "max_workers": 3,
        "scale_up_threshold": 100,
        "scale_down_threshold": 10,
        "update_threshold_hours": 24,
        "batch_size": 10,
        "delay_between_requests": 2000,  # ms
        "max_retries": 3,
        "cron_expression": None,
        "worker_name": f"eje-{worker_type}-worker",
        "worker_script": f"src/workers/{worker_type}_worker.js",
        "max_memory_restart": "300M",
        "schedule": {
            "work_start_hour": None,
            "work_end_hour": None,
            "work_days": None,
            "use_global_schedule": True,
        },
    }


DEFAULT_MANAGER_CONFIG = {
    "check_interval": 60000,  # ms
    "lock_timeout_minutes": 10,
    "max_workers": 3,
    "min_workers": 0,
    "scale_up_threshold": 100,
    "scale_down_threshold": 10,
    "update_threshold_hours": 24,
    "cpu_threshold": 0.8,
    "memory_threshold": 0.8,
    "work_start_hour": 8,
    "work_end_hour": 22,
    "work_days": [1, 2, 3, 4, 5],  # 0 = sunday
    "timezone": "America/Argentina/Buenos_Aires",
    "worker_names": {t: f"eje-{t}-worker" for t in WORKER_TYPES},
    "workers": {t: default_worker_config(t) for t in WORKER_TYPES},
}

DEFAULT_MANAGER_STATE = {
    "is_running": False,
    "is_paused": False,
    "last_cycle_at": None,
    "cycle_count": 0,
    "system_resources": {},
    "workers": {t: {"active": 0, "pending": 0, "last_scale_at": None} for t in WORKER_TYPES},
}


class ManagerConfig(Base):
    """Single row named ``eje-manager``: scaling settings plus the last reported state."""

    __tablename__ = "manager_config_eje"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, default=MANAGER_NAME)
    config: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=lambda: copy.deepcopy(DEFAULT_MANAGER_CONFIG)
    )
    current_state: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=lambda: copy.deepcopy(DEFAULT_MANAGER_STATE)
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    history: Mapped[list["ManagerHistoryEntry"]] = relationship(
        back_populates="manager", cascade="all, delete-orphan", order_by="ManagerHistoryEntry.id"
    )
    alerts: Mapped[list["ManagerAlert"]] = relationship(
        back_populates="manager", cascade="all, delete-orphan", order_by="ManagerAlert.id"
    )
    daily_stats: Mapped[list["ManagerDailyStat"]] = relationship(
        back_populates="manager", cascade="all, delete-orphan", order_by="ManagerDailyStat.date"
    )


class ManagerHistoryEntry(Base):
    __tablename__ = "manager_config_eje_history"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    manager_id: Mapped[int] = mapped_column(
        ForeignKey("manager_config_eje.id", ondelete="CASCADE"), nullable=False, index=True
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    event: Mapped[str] = mapped_column(String(64), nullable=False)  # cycle, scale, toggle, pause, config
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    manager: Mapped["ManagerConfig"] = relationship(back_populates="history")


class ManagerAlert(Base):
    __tablename__ = "manager_config_eje_alerts"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    manager_id: Mapped[int] = mapped_column(
        ForeignKey("manager_config_eje.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    level: Mapped[str] = mapped_column(String(16), nullable=False, default="warning")
    worker_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    acknowledged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    acknowledged_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    manager: Mapped["ManagerConfig"] = relationship(back_populates="alerts")


class ManagerDailyStat(Base):
    __tablename__ = "manager_config_eje_daily_stats"
    __table_args__ = (UniqueConstraint("manager_id", "date", name="uq_manager_daily_stat"),)
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    manager_id: Mapped[int] = mapped_column(
        ForeignKey("manager_config_eje.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    cycles: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    verified: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stuck_cleared: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    peak_workers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    manager: Mapped["ManagerConfig"] = relationship(back_populates="daily_stats")


class WorkerStats(Base):
    """Per worker process totals, its running batch and finished runs."""

    __tablename__ = "worker_stats_eje"
    __table_args__ = (UniqueConstraint("worker_type", "worker_id", name="uq_worker_stats"),)
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    worker_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    worker_id: Mapped[str] = mapped_column(String(128), nullable=False)
    total_runs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_success: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_errors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_run_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    current_run: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    runs: Mapped[list["WorkerRun"]] = relationship(
        back_populates="stats", cascade="all, delete-orphan", order_by="WorkerRun.started_at"
    )


class WorkerRun(Base):
    __tablename__ = "worker_stats_eje_runs"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    stats_id: Mapped[int] = mapped_column(
        ForeignKey("worker_stats_eje.id", ondelete="CASCADE"), nullable=False, index=True
    )
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="completed")
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    stats: Mapped["WorkerStats"] = relationship(back_populates="runs")
