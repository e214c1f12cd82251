"""
Pytest configuration and shared fixtures.

Database: in-memory SQLite shared through StaticPool, fresh tables per test.
Redis: fakeredis. Celery notifier: MagicMock.
"""
import os

# must be set before storefront.utils.settings is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_ALWAYS_EAGER"] = "true"

from decimal import Decimal
from unittest.mock import MagicMock

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data.database import Base, get_db
from storefront.data import models  # noqa: F401
from storefront.data.models.product import ProductModel
from storefront.domain.identity import Authenticated, Anonymous
from storefront.services.local_store import LocalStateStore, MemoryBackend
from storefront.services.lock_service import LockService


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def products(db):
    """Catalog used across tests, keyed by a short name."""
    catalog = {
        "A": ProductModel(id=1, sku="A-1", name="Дрель", price=Decimal("100.00"), stock=10, is_active=True),
        "B": ProductModel(id=2, sku="B-2", name="Пила", price=Decimal("250.50"), stock=5, is_active=True),
        "C": ProductModel(id=3, sku="C-3", name="Снято с продажи", price=Decimal("10.00"), stock=100, is_active=False),
        "D": ProductModel(id=4, sku="D-4", name="Последний", price=Decimal("999.00"), stock=1, is_active=True),
    }
    db.add_all(catalog.values())
    db.commit()
    return catalog


# ============================================================================
# Identities and stores
# ============================================================================

@pytest.fixture
def user():
    return Authenticated(user_id=42)


@pytest.fixture
def visitor():
    return Anonymous(local_token="tok-visitor")


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def local_store(backend, visitor):
    return LocalStateStore(backend, visitor.local_token)


@pytest.fixture
def fake_redis():
    r = fakeredis.FakeRedis(decode_responses=True)
    r.flushall()
    return r


@pytest.fixture
def lock_service(fake_redis):
    return LockService(client=fake_redis)


@pytest.fixture
def notifier():
    return MagicMock()


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def client(session_factory, backend, lock_service, notifier):
    from storefront.api import deps
    from storefront.main import create_app

    app = create_app()

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[deps.get_backend] = lambda: backend
    app.dependency_overrides[deps.get_lock_service] = lambda: lock_service
    app.dependency_overrides[deps.get_notifier] = lambda: notifier

    return TestClient(app)
