from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Boolean, DateTime, Integer, JSON, String, func
from ..shared.db import Base

DEFAULT_SCHEDULE = {
    "enabled": False,
    "start_hour": 8,
    "end_hour": 20,
    "work_days": [1, 2, 3, 4, 5],
    "timezone": "America/Argentina/Buenos_Aires",
}
DEFAULT_RATE_LIMIT = {"max_requests_per_minute": 30, "max_requests_per_hour": 1000}


class WorkerConfig(Base):
    __tablename__ = "configuracion_eje"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, default="default")
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    worker_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    batch_size: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    delay_between_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=2000)  # ms
    delay_between_batches: Mapped[int] = mapped_column(Integer, nullable=False, default=10000)  # ms
    max_errors_before_stop: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    schedule: Mapped[dict] = mapped_column(JSON, nullable=False, default=lambda: dict(DEFAULT_SCHEDULE))
    rate_limit: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=lambda: dict(DEFAULT_RATE_LIMIT)
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
