from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScheduleIn(BaseModel):
    enabled: Optional[bool] = None
    start_hour: Optional[int] = Field(default=None, ge=0, le=23)
    end_hour: Optional[int] = Field(default=None, ge=0, le=24)
    work_days: Optional[List[int]] = None  # 0 = sunday
    timezone: Optional[str] = None


class RateLimitIn(BaseModel):
    max_requests_per_minute: Optional[int] = Field(default=None, ge=1)
    max_requests_per_hour: Optional[int] = Field(default=None, ge=1)


class WorkerConfigUpdate(BaseModel):
    enabled: Optional[bool] = None
    worker_count: Optional[int] = Field(default=None, ge=0)
    batch_size: Optional[int] = Field(default=None, ge=1)
    delay_between_requests: Optional[int] = Field(default=None, ge=0)
    delay_between_batches: Optional[int] = Field(default=None, ge=0)
    max_errors_before_stop: Optional[int] = Field(default=None, ge=1)
    schedule: Optional[ScheduleIn] = None
    rate_limit: Optional[RateLimitIn] = None


class WorkerConfigOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    name: str
    enabled: bool
    worker_count: int
    batch_size: int
    delay_between_requests: int
    delay_between_batches: int
    max_errors_before_stop: int
    schedule: dict
    rate_limit: dict
    updated_at: Optional[datetime] = None
