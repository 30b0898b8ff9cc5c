# eje_api/locks/schemas.py
from typing import Optional
from pydantic import BaseModel, Field


class LockIn(BaseModel):
    worker_id: Optional[str] = Field(default=None, max_length=128)


class LockOut(BaseModel):
    success: bool
    message: str
    fence: Optional[int] = None  # set only when the lease was acquired


class UnlockOut(BaseModel):
    success: bool
    message: str
