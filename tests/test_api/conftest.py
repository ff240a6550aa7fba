"""
API fixtures: TestClient bound to the in-memory test session.
"""
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_db
from app.main import app


@pytest.fixture
def client(db_session):
    """Test client for FastAPI"""
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """login(user) -> client carrying that user's session cookie"""
    def _login(user, password: str = "password123") -> TestClient:
        response = client.post("/login", json={"email": user.email, "password": password})
        assert response.status_code == 200
        return client
    return _login
