from __future__ import annotations
from pathlib import Path
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy import create_engine
from .config import settings


class Base(DeclarativeBase):
    pass


DB_URL = settings.DATABASE_URL
if DB_URL.startswith("sqlite:///") and ":memory:" not in DB_URL:
    Path(DB_URL.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)

connect_args = {"check_same_thread": False} if DB_URL.startswith("sqlite") else {}
engine = create_engine(DB_URL, echo=False, future=True, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
