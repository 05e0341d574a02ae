from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.src.services import config as config_module
from backend.src.services.database import DatabaseService, init_database

SECRET = "a-secure-secret-value-123"
LOCAL_TOKEN = "local-test-token"
PASSWORD = "correct-horse"


@pytest.fixture(autouse=True)
def restore_config_cache():
    """
    Ensure configuration cache is cleared between tests.
    """
    config_module.reload_config()
    yield
    config_module.reload_config()


@pytest.fixture
def server_env(monkeypatch, tmp_path: Path) -> Path:
    """Point the server at a fresh database and return its path."""
    db_path = tmp_path / "dnote.db"
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    monkeypatch.setenv("JWT_SECRET_KEY", SECRET)
    monkeypatch.setenv("ENABLE_LOCAL_MODE", "true")
    monkeypatch.setenv("LOCAL_DEV_TOKEN", LOCAL_TOKEN)
    monkeypatch.delenv("DISABLE_REGISTRATION", raising=False)
    monkeypatch.delenv("SNIPPET_CONTEXT", raising=False)
    config_module.reload_config()
    init_database(db_path)
    return db_path


@pytest.fixture
def db(server_env: Path) -> DatabaseService:
    return DatabaseService(server_env)


@pytest.fixture
def client(server_env: Path) -> TestClient:
    from backend.src.api.main import app

    return TestClient(app)


@pytest.fixture
def signup(client: TestClient):
    """Register an account through the join page and return a signed API key for it."""

    def _signup(email: str, password: str = PASSWORD) -> str:
        response = client.post(
            "/join",
            data={"email": email, "password": password, "password_confirmation": password},
            follow_redirects=False,
        )
        assert response.status_code == 303, response.text
        client.cookies.clear()

        response = client.post("/api/v3/signin", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        client.cookies.clear()
        return response.json()["key"]

    return _signup
