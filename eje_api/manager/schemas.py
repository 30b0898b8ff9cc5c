from __future__ import annotations
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkerNamesIn(BaseModel):
    verification: Optional[str] = None
    update: Optional[str] = None
    stuck: Optional[str] = None


class GlobalSettingsUpdate(BaseModel):
    check_interval: Optional[int] = Field(default=None, ge=1000)  # ms
    lock_timeout_minutes: Optional[int] = Field(default=None, ge=1)
    update_threshold_hours: Optional[int] = Field(default=None, ge=1)
    cpu_threshold: Optional[float] = Field(default=None, gt=0, le=1)
    memory_threshold: Optional[float] = Field(default=None, gt=0, le=1)
    work_start_hour: Optional[int] = Field(default=None, ge=0, le=23)
    work_end_hour: Optional[int] = Field(default=None, ge=0, le=24)
    work_days: Optional[List[int]] = None
    timezone: Optional[str] = None


class ManagerConfigUpdate(GlobalSettingsUpdate):
    max_workers: Optional[int] = Field(default=None, ge=0)
    min_workers: Optional[int] = Field(default=None, ge=0)
    scale_up_threshold: Optional[int] = Field(default=None, ge=0)
    scale_down_threshold: Optional[int] = Field(default=None, ge=0)
    worker_names: Optional[WorkerNamesIn] = None


class WorkerScheduleIn(BaseModel):
    work_start_hour: Optional[int] = Field(default=None, ge=0, le=23)
    work_end_hour: Optional[int] = Field(default=None, ge=0, le=24)
    work_days: Optional[List[int]] = None
    use_global_schedule: Optional[bool] = None


class WorkerTypeConfigUpdate(BaseModel):
    enabled: Optional[bool] = None
    min_workers: Optional[int] = Field(default=None, ge=0)
    max_workers: Optional[int] = Field(default=None, ge=0)
    scale_up_threshold: Optional[int] = Field(default=None, ge=0)
    scale_down_threshold: Optional[int] = Field(default=None, ge=0)
    update_threshold_hours: Optional[int] = Field(default=None, ge=1)
    batch_size: Optional[int] = Field(default=None, ge=1)
    delay_between_requests: Optional[int] = Field(default=None, ge=0)
    max_retries: Optional[int] = Field(default=None, ge=0)
    cron_expression: Optional[str] = None
    worker_name: Optional[str] = None
    worker_script: Optional[str] = None
    max_memory_restart: Optional[str] = None
    schedule: Optional[WorkerScheduleIn] = None


class HistoryEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    timestamp: dt.datetime
    event: str
    details: dict


class AlertOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    created_at: dt.datetime
    level: str
    worker_type: Optional[str] = None
    message: str
    acknowledged: bool
    acknowledged_at: Optional[dt.datetime] = None
    acknowledged_by: Optional[str] = None


class DailyStatOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    date: dt.date
    cycles: int
    verified: int
    updated: int
    errors: int
    stuck_cleared: int
    peak_workers: int


class WorkerRunOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    started_at: dt.datetime
    finished_at: Optional[dt.datetime] = None
    processed: int
    success: int
    errors: int
    status: str
    error_message: Optional[str] = None


class WorkerStatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    worker_type: str
    worker_id: str
    total_runs: int
    total_processed: int
    total_success: int
    total_errors: int
    last_run_at: Optional[dt.datetime] = None
    current_run: Optional[dict] = None
