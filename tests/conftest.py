# tests/conftest.py
"""Shared fixtures: an in-memory SQLite database, users and an API client."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["ADMIN_PASSWORD"] = "admin-pass"

import pytest
from datetime import datetime, timedelta

from app.database import Base, SessionLocal, create_tables, engine
from app.services.auth_service import create_session
from app.services.user_service import create_user

ENTRY_DATA = {
    "driver_name": "JOAO DA SILVA",
    "assistant1_name": None,
    "assistant2_name": None,
    "transport_company_name": "TRANSLOG",
    "plate1": "ABC1D23",
    "plate2": None,
    "plate3": None,
    "internal_destination_name": "EXPEDICAO",
    "movement_type": "LOADING",
    "observation": None,
}


@pytest.fixture
def db():
    create_tables(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def entry_data():
    return dict(ENTRY_DATA)


@pytest.fixture
def clock():
    """Distinct timestamps, one second apart, so every entry gets its own id."""
    state = {"now": datetime(2024, 5, 10, 8, 0, 0)}

    def tick():
        current = state["now"]
        state["now"] = current + timedelta(seconds=1)
        return current

    return tick


@pytest.fixture
def make_user(db):
    def _make(login, role, name=None, password="secret", can_view_dashboard=False):
        return create_user(db, name or login.upper(), login, password, role, can_view_dashboard)
    return _make


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient
    from app.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(db, make_user):
    """Session headers for a freshly created user of the given role."""
    def _headers(role, login=None, **kwargs):
        user = make_user(login or f"{role}_user", role, **kwargs)
        return {"Authorization": f"Bearer {create_session(db, user)}"}
    return _headers
