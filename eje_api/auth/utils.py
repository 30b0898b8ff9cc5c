# eje_api/auth/utils.py
import datetime as dt
import hmac
import logging
import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session
from ..deps import get_db
from ..shared.config import settings
from .models import User, ADMIN_ROLES
from .schemas import Principal

logger = logging.getLogger(__name__)

USER_ID_CLAIMS = ("userId", "_id", "id", "sub")


def create_token(user_id: str, ttl_min: int | None = None, **claims) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    ttl = settings.ACCESS_TTL_MIN if ttl_min is None else ttl_min
    payload = {"sub": str(user_id), "iat": now, "exp": now + dt.timedelta(minutes=ttl), **claims}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def _extract_token(request: Request) -> str | None:
    # cookie -> Authorization header -> ?token=
    token = request.cookies.get("auth_token")
    if not token:
        authz = request.headers.get("authorization")
        if authz and authz.lower().startswith("bearer "):
            token = authz.split(" ", 1)[1].strip()
    if not token:
        token = request.query_params.get("token")
    return token or None


def _extract_api_key(request: Request) -> str | None:
    return (
        request.headers.get("x-api-key")
        or request.headers.get("api-key")
        or request.query_params.get("apiKey")
    )


def _valid_api_key(key: str | None) -> bool:
    if not key or not settings.API_KEY:
        return False
    return hmac.compare_digest(key, settings.API_KEY)


def verify_token(request: Request) -> Principal:
    token = _extract_token(request)
    if not token:
        raise HTTPException(401, "No authentication token provided")
    try:
        data = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.ExpiredSignatureError:
        raise HTTPException(401, "Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning("token verification failed path=%s error=%s", request.url.path, e)
        raise HTTPException(401, "Invalid token")

    user_id = next((str(data[c]) for c in USER_ID_CLAIMS if data.get(c)), None)
    if not user_id:
        raise HTTPException(401, "Invalid token")
    logger.debug("token verified user=%s path=%s", user_id, request.url.path)
    return Principal(user_id=user_id, claims=data)


def require_api_key(request: Request) -> Principal:
    key = _extract_api_key(request)
    if not key:
        raise HTTPException(401, "API key not provided")
    if not _valid_api_key(key):
        raise HTTPException(401, "Invalid API key")
    logger.debug("api key verified path=%s", request.url.path)
    return Principal(via_api_key=True)


def token_or_api_key(request: Request) -> Principal:
    if _valid_api_key(_extract_api_key(request)):
        logger.debug("authenticated via api key path=%s", request.url.path)
        return Principal(via_api_key=True)
    return verify_token(request)


def current_user(
    principal: Principal = Depends(verify_token), db: Session = Depends(get_db)
) -> User:
    user = db.get(User, principal.user_id)
    if not user or not user.is_active:
        raise HTTPException(401, "User disabled")
    return user


def require_admin(
    principal: Principal = Depends(verify_token), db: Session = Depends(get_db)
) -> User:
    user = db.get(User, principal.user_id)
    if not user:
        raise HTTPException(404, "User not found")
    if user.role not in ADMIN_ROLES:
        raise HTTPException(403, "Admin access required")
    return user
