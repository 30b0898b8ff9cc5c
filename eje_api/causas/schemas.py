from __future__ import annotations
from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ------------------------
# Causa
# ------------------------
class CausaBase(BaseModel):
    cuij: Optional[str] = Field(default=None, max_length=128)
    numero: Optional[int] = None
    anio: Optional[int] = None
    caratula: Optional[str] = None
    juzgado: Optional[str] = None
    objeto: Optional[str] = None
    estado: Optional[str] = None
    fecha_inicio: Optional[datetime] = None
    source: Optional[str] = None
    search_term: Optional[str] = None
    verified: Optional[bool] = None
    verified_at: Optional[datetime] = None
    is_valid: Optional[bool] = None
    is_private: Optional[bool] = None
    details_loaded: Optional[bool] = None
    details_last_update: Optional[datetime] = None
    error_count: Optional[int] = None
    last_error: Optional[str] = None
    movimientos: Optional[List[dict[str, Any]]] = None
    movimientos_count: Optional[int] = None
    intervinientes: Optional[List[dict[str, Any]]] = None
    causas_relacionadas: Optional[List[dict[str, Any]]] = None
    is_pivot: Optional[bool] = None
    # candidates of a pivot, only read on create
    pivot_candidate_ids: Optional[List[int]] = None


class CausaCreate(CausaBase):
    pass


class CausaUpdate(CausaBase):
    pass


class CausaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    cuij: Optional[str] = None
    numero: int
    anio: int
    caratula: Optional[str] = None
    juzgado: Optional[str] = None
    objeto: Optional[str] = None
    estado: Optional[str] = None
    fecha_inicio: Optional[datetime] = None
    source: str
    search_term: Optional[str] = None
    verified: bool
    verified_at: Optional[datetime] = None
    is_valid: Optional[bool] = None
    is_private: bool
    details_loaded: bool
    details_last_update: Optional[datetime] = None
    update_enabled: bool
    error_count: int
    last_error: Optional[str] = None
    locked_by: Optional[str] = None
    locked_at: Optional[datetime] = None
    lock_fence: int
    movimientos_count: int
    is_pivot: bool
    resolved: bool
    resolved_at: Optional[datetime] = None
    resolved_to_id: Optional[int] = None
    folder_ids: List[str] = Field(default_factory=list)
    user_causa_ids: List[str] = Field(default_factory=list)
    user_updates_enabled: List[dict[str, Any]] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CausaDetailOut(CausaOut):
    movimientos: Optional[List[dict[str, Any]]] = None
    intervinientes: Optional[List[dict[str, Any]]] = None
    causas_relacionadas: Optional[List[dict[str, Any]]] = None
    update_history: Optional[List[dict[str, Any]]] = None


# trimmed shape for lists and stats
class CausaSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    cuij: Optional[str] = None
    numero: int
    anio: int
    caratula: Optional[str] = None
    verified: bool
    is_valid: Optional[bool] = None
    is_private: bool
    details_loaded: bool
    error_count: int
    last_error: Optional[str] = None
    locked_by: Optional[str] = None
    locked_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    details_last_update: Optional[datetime] = None
    movimientos_count: int
    updated_at: Optional[datetime] = None


# ------------------------
# Pivot
# ------------------------
class PivotResolveIn(BaseModel):
    target_id: int


SortOrder = Literal["asc", "desc"]
