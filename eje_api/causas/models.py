from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
)
from ..shared.db import Base


class Causa(Base):
    __tablename__ = "causas_eje"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    cuij: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    numero: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    anio: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    caratula: Mapped[str | None] = mapped_column(Text, nullable=True)
    juzgado: Mapped[str | None] = mapped_column(String(255), nullable=True)
    objeto: Mapped[str | None] = mapped_column(String(255), nullable=True)
    estado: Mapped[str | None] = mapped_column(String(64), nullable=True)
    fecha_inicio: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    source: Mapped[str] = mapped_column(String(32), nullable=False, default="app")
    search_term: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # verification worker
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_valid: Mapped[bool | None] = mapped_column(Boolean, nullable=True)  # None = pending
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # update worker
    details_loaded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    details_last_update: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    update_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    stuck_since: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # lease: locked_by NULL means free
    locked_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    lock_fence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    movimientos: Mapped[list | None] = mapped_column(JSON, nullable=True, default=list)
    movimientos_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    intervinientes: Mapped[list | None] = mapped_column(JSON, nullable=True, default=list)
    causas_relacionadas: Mapped[list | None] = mapped_column(JSON, nullable=True, default=list)
    update_history: Mapped[list | None] = mapped_column(JSON, nullable=True, default=list)

    # pivot: placeholder for an ambiguous match, merged later into a real causa
    is_pivot: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    resolved_to_id: Mapped[int | None] = mapped_column(
        ForeignKey("causas_eje.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    folders: Mapped[list["CausaFolder"]] = relationship(
        back_populates="causa", cascade="all, delete-orphan"
    )
    users: Mapped[list["CausaUser"]] = relationship(
        back_populates="causa", cascade="all, delete-orphan"
    )
    preferences: Mapped[list["CausaUserPreference"]] = relationship(
        back_populates="causa", cascade="all, delete-orphan"
    )
    pivot_links: Mapped[list["CausaPivotLink"]] = relationship(
        foreign_keys="CausaPivotLink.pivot_id",
        back_populates="pivot",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_causas_numero_anio", "numero", "anio"),
        Index("ix_causas_lock", "locked_by", "locked_at"),
    )

    @property
    def folder_ids(self) -> list[str]:
        return [f.folder_id for f in self.folders]

    @property
    def user_causa_ids(self) -> list[str]:
        return [u.user_id for u in self.users]

    @property
    def user_updates_enabled(self) -> list[dict]:
        return [{"user_id": p.user_id, "enabled": p.enabled} for p in self.preferences]


class CausaFolder(Base):
    __tablename__ = "causas_eje_folders"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    causa_id: Mapped[int] = mapped_column(
        ForeignKey("causas_eje.id", ondelete="CASCADE"), nullable=False
    )
    folder_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    causa: Mapped["Causa"] = relationship(back_populates="folders")

    __table_args__ = (UniqueConstraint("causa_id", "folder_id", name="uq_causa_folder"),)


class CausaUser(Base):
    __tablename__ = "causas_eje_users"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    causa_id: Mapped[int] = mapped_column(
        ForeignKey("causas_eje.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    causa: Mapped["Causa"] = relationship(back_populates="users")

    __table_args__ = (UniqueConstraint("causa_id", "user_id", name="uq_causa_user"),)


class CausaUserPreference(Base):
    __tablename__ = "causas_eje_user_prefs"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    causa_id: Mapped[int] = mapped_column(
        ForeignKey("causas_eje.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    causa: Mapped["Causa"] = relationship(back_populates="preferences")

    __table_args__ = (UniqueConstraint("causa_id", "user_id", name="uq_causa_user_pref"),)


class CausaPivotLink(Base):
    """Candidate causa a pivot may be resolved into."""

    __tablename__ = "causas_eje_pivot_links"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    pivot_id: Mapped[int] = mapped_column(
        ForeignKey("causas_eje.id", ondelete="CASCADE"), nullable=False
    )
    causa_id: Mapped[int] = mapped_column(
        ForeignKey("causas_eje.id", ondelete="CASCADE"), nullable=False
    )

    pivot: Mapped["Causa"] = relationship(foreign_keys=[pivot_id], back_populates="pivot_links")
    causa: Mapped["Causa"] = relationship(foreign_keys=[causa_id])

    __table_args__ = (UniqueConstraint("pivot_id", "causa_id", name="uq_pivot_causa"),)
