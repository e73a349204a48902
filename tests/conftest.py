import os
import tempfile

# Settings are read at import time; point them at throwaway values first.
_BOOTSTRAP_DIR = tempfile.mkdtemp(prefix="instrument-scheduler-")
os.environ["DATABASE_URL"] = f"sqlite:///{_BOOTSTRAP_DIR}/bootstrap.db"
os.environ["JWT_SECRET_KEY"] = "test-session-secret"
os.environ["IDENTITY_TOKEN_SECRET"] = "test-identity-secret"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import date

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import sessionmaker

from instrument_scheduler import auth, models
from instrument_scheduler.database import Base, create_db_engine, get_db
from instrument_scheduler.main import app

DAY = date(2026, 3, 2)


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path}/scheduler.db", busy_timeout=30)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client_obj:
        yield client_obj
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(engine):
    """Stores a user in its own short transaction and returns a detached copy."""
    detached = sessionmaker(bind=engine, expire_on_commit=False)
    counter = {"n": 0}

    def _make_user(user_id=None, approved=True, admin=False, first_name="Test", last_name=None, email=None):
        counter["n"] += 1
        user_id = user_id or f"user-{counter['n']}"
        user = models.User(
            id=user_id,
            email=email or f"{user_id}@lab.example.org",
            first_name=first_name,
            last_name=last_name if last_name is not None else f"User{counter['n']}",
            is_approved=approved,
            is_admin=admin,
        )
        with detached() as session:
            session.add(user)
            session.commit()
        return user

    return _make_user


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {auth.create_access_token(user.id)}"}


def identity_token(sub, **claims) -> str:
    payload = {"sub": sub, **claims}
    return jwt.encode(payload, os.environ["IDENTITY_TOKEN_SECRET"], algorithm="HS256")
