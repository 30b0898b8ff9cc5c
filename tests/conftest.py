import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["API_KEY"] = "test-worker-key"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eje_api.main import app
from eje_api.deps import get_db
from eje_api.shared.db import Base
from eje_api.shared.utils import utcnow
from eje_api.auth.models import User, UserRole
from eje_api.auth.utils import create_token
from eje_api.causas.models import Causa

API_KEY = "test-worker-key"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db):
    user = User(id="admin-1", email="admin@example.com", name="Admin", role=UserRole.admin)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def plain_user(db):
    user = User(id="user-1", email="user@example.com", name="User", role=UserRole.user)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_token(admin.id)}"}


@pytest.fixture
def user_headers(plain_user):
    return {"Authorization": f"Bearer {create_token(plain_user.id)}"}


@pytest.fixture
def api_headers():
    return {"x-api-key": API_KEY}


@pytest.fixture
def make_causa(db):
    counter = {"n": 0}

    def _make(**kw) -> Causa:
        counter["n"] += 1
        n = counter["n"]
        kw.setdefault("cuij", f"J-01-{n:08d}-5/2021-0")
        kw.setdefault("numero", n)
        kw.setdefault("anio", 2021)
        kw.setdefault("caratula", f"PEREZ JUAN C/ GOMEZ {n}")
        # stable FIFO order for queue tests
        kw.setdefault("created_at", utcnow() - timedelta(hours=1) + timedelta(seconds=n))
        causa = Causa(**kw)
        db.add(causa)
        db.commit()
        db.refresh(causa)
        return causa

    return _make
