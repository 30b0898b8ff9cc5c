# eje_api/auth/router.py
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import select
from passlib.hash import bcrypt
from ..deps import get_db
from ..shared.config import settings
from ..shared.utils import utcnow
from .models import User
from .schemas import LoginIn, TokenOut, UserOut
from .utils import create_token, current_user

router = APIRouter(prefix=f"{settings.API_PREFIX}/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = db.scalar(select(User).where(User.email == payload.email, User.is_active.is_(True)))
    if not user or not user.password_hash or not bcrypt.verify(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="invalid credentials")
    token = create_token(user.id, role=user.role.value)
    user.last_login_at = utcnow()
    db.commit()
    logger.info("user logged in id=%s", user.id)
    return {"access_token": token}


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(current_user)):
    return UserOut(id=user.id, email=user.email, name=user.name, role=user.role)
