# eje_api/auth/models.py
import enum
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, Enum, func
from ..shared.db import Base


class UserRole(str, enum.Enum):
    user = "USER_ROLE"
    admin = "ADMIN_ROLE"
    superadmin = "SUPERADMIN_ROLE"


ADMIN_ROLES = (UserRole.admin, UserRole.superadmin)


class User(Base):
    __tablename__ = "usuarios"
    # ids are issued by the account service, so they are opaque strings
    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: uuid.uuid4().hex
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda e: [r.value for r in e]), default=UserRole.user
    )
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
