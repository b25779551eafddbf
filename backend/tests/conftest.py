"""Shared fixtures: in-memory database, fresh login limiter, API client."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from finance_api.config import settings
from finance_api.database import Base, engine_options, get_db
from finance_api.main import app
from finance_api.middleware.rate_limit import LoginRateLimiter, get_login_rate_limiter, limiter

USER = "Marshall Epie"


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", **engine_options("sqlite://"))
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def login_limiter():
    return LoginRateLimiter("5/minute", "memory://")


@pytest.fixture
def client(session_factory, login_limiter):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_login_rate_limiter] = lambda: login_limiter
    yield TestClient(app)
    app.dependency_overrides.clear()
    limiter.reset()


@pytest.fixture
def token(client):
    """Session token for Marshall Epie."""
    resp = client.post(
        "/api/finance-auth",
        json={"action": "login", "userName": USER, "password": settings.FINANCE_EDIT_PASSWORD},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["sessionToken"]


@pytest.fixture
def incoming_data():
    return {
        "date": "2026-03-14",
        "amount": 100,
        "source": "Cash",
        "donor_initials": "JD",
        "purpose_note": "Workshop tools",
        "approved_by": USER,
    }


@pytest.fixture
def outgoing_data():
    return {
        "date": "2026-03-20",
        "amount": 40.5,
        "recipient": "Hardware Store",
        "purpose": "Soldering kits",
        "category": "Education",
        "approved_by": "Aruna Ramineni",
    }
