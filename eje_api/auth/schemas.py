# eje_api/auth/schemas.py
from dataclasses import dataclass, field
from pydantic import BaseModel, EmailStr
from ..auth.models import UserRole


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    id: str
    email: EmailStr
    name: str
    role: UserRole


@dataclass
class Principal:
    """Who is calling: a JWT user, or a worker holding the API key."""

    user_id: str | None = None
    claims: dict = field(default_factory=dict)
    via_api_key: bool = False
