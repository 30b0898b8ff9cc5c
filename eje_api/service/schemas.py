# eje_api/service/schemas.py
from typing import Optional
from pydantic import BaseModel, Field

# required fields are checked in the router so missing ones answer 400, not 422


class AssociateFolderIn(BaseModel):
    folder_id: Optional[str] = Field(default=None, max_length=64)
    causa_id: Optional[int] = None
    cuij: Optional[str] = None
    numero: Optional[int] = None
    anio: Optional[int] = None
    search_term: Optional[str] = None


class DissociateFolderIn(BaseModel):
    causa_id: Optional[int] = None
    folder_id: Optional[str] = Field(default=None, max_length=64)


class UpdatePreferenceIn(BaseModel):
    causa_id: Optional[int] = None
    enabled: Optional[bool] = None
