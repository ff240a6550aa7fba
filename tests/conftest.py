"""
Pytest fixtures for testing
"""
import pytest
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.dialects.postgresql import JSONB

from app.auth import AuthUser, register_user, to_auth_user
from app.infrastructure.db.session import Base
from app.infrastructure.store.client import StoreClient
import app.infrastructure.db.models  # noqa: F401


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads, JSONB remapped to JSON."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # SQLite doesn't support JSONB, remap to JSON for tests
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def make_user(db_session):
    """Factory: make_user("a@x.com", is_admin=False) -> AuthUser"""
    def _make(email: str, password: str = "password123", is_admin: bool = False, name: str | None = None) -> AuthUser:
        user = register_user(db_session, email, password, name=name, is_admin=is_admin)
        return to_auth_user(user)
    return _make


@pytest.fixture
def alice(make_user) -> AuthUser:
    return make_user("alice@example.com", name="Alice")


@pytest.fixture
def bob(make_user) -> AuthUser:
    return make_user("bob@example.com", name="Bob")


@pytest.fixture
def admin(make_user) -> AuthUser:
    return make_user("root@example.com", is_admin=True, name="Root")


@pytest.fixture
def store_for(db_session):
    """Factory: store_for(caller) -> StoreClient bound to caller"""
    def _store(caller: AuthUser | None) -> StoreClient:
        return StoreClient(db_session, caller)
    return _store
