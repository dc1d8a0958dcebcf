# tests/conftest.py

from datetime import datetime

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from snipqueue import config
from snipqueue.auth import LocalIdentityProvider, create_access_token, get_identity_provider
from snipqueue.data import seed_catalog
from snipqueue.db import get_session, init_db
from snipqueue.deps import get_now
from snipqueue.main import app
from snipqueue.models import Customer, IdentityRecord

# Monday 2030-01-07, before the shop opens
NOW = datetime(2030, 1, 7, 8, 0)
MONDAY = NOW.date()

ADMIN_EMAIL = "admin@example.com"


@pytest.fixture(autouse=True)
def admin_allowlist(monkeypatch):
    monkeypatch.setattr(config, "ADMIN_EMAILS", [ADMIN_EMAIL])


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return engine


@pytest.fixture
def client(engine):
    def override_session():
        with Session(engine) as session:
            yield session

    def local_provider(session: Session = Depends(get_session)):
        return LocalIdentityProvider(session)

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_identity_provider] = local_provider
    app.dependency_overrides[get_now] = lambda: NOW
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def shop(engine):
    with Session(engine) as session:
        seed_catalog(session)


def make_user(engine, uid, email=None, name=None, claims=None, customer=False):
    with Session(engine) as session:
        session.add(IdentityRecord(uid=uid, email=email, display_name=name, claims=claims or {}))
        if customer:
            session.add(Customer(id=uid, email=email or "", name=name or ""))
        session.commit()
    return {"Authorization": f"Bearer {create_access_token({'sub': uid})}"}


@pytest.fixture
def admin_headers(engine):
    return make_user(engine, "admin-uid", email=ADMIN_EMAIL, name="Shop Admin")


@pytest.fixture
def customer_headers(engine):
    return make_user(engine, "cust-1", email="john@example.com", name="John Doe")


@pytest.fixture
def other_customer_headers(engine):
    return make_user(engine, "cust-2", email="jane@example.com", name="Jane Smith")
