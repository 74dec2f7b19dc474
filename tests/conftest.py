"""Shared fixtures: in-memory SQLite database, temporary page cache, test client."""

import os
import tempfile

# Must be set before dashboard.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("CACHE_DIR", tempfile.mkdtemp(prefix="invoice-dashboard-test-"))
os.environ.setdefault("DEMO_MODE", "false")
os.environ.setdefault("INVOICE_DELETE_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from dashboard import crud
from dashboard.cache import PageCache, get_page_cache
from dashboard.db import Base, get_db, make_engine, make_session_factory
from dashboard.models import Customer, InvoiceStatus


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def page_cache(tmp_path) -> PageCache:
    cache = PageCache(tmp_path / "pages")
    yield cache
    cache.close()


@pytest.fixture
def customers(db: Session) -> list[Customer]:
    """Two customers, created out of name order."""
    rows = [
        Customer(name="Lee Robinson", email="lee@robinson.com"),
        Customer(name="Delba de Oliveira", email="delba@oliveira.com"),
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def invoice_id(db: Session, customers: list[Customer]) -> str:
    return crud.insert_invoice(db, customers[0].id, 15795, InvoiceStatus.PENDING, "2023-12-06")


@pytest.fixture
def app(session_factory, page_cache):
    from dashboard.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_page_cache] = lambda: page_cache
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
