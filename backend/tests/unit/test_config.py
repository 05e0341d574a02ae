from pathlib import Path

import pytest

from backend.src.services import config as config_module


@pytest.fixture
def db_env(monkeypatch, tmp_path: Path) -> Path:
    db_path = tmp_path / "data" / "dnote.db"
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    for key in (
        "JWT_SECRET_KEY",
        "SESSION_TTL_DAYS",
        "DISABLE_REGISTRATION",
        "COOKIE_SECURE",
        "CORS_ORIGINS",
        "SNIPPET_CONTEXT",
    ):
        monkeypatch.delenv(key, raising=False)
    return db_path


def test_get_config_defaults(db_env: Path) -> None:
    cfg = config_module.reload_config()

    assert cfg.database_path == db_env.resolve()
    assert cfg.database_path.parent.is_dir()
    assert cfg.jwt_secret_key is None
    assert cfg.session_ttl_days == 30
    assert cfg.snippet_context == 60
    assert cfg.disable_registration is False
    assert cfg.cookie_secure is False


def test_get_config_reads_flags_and_lists(monkeypatch, db_env: Path) -> None:
    monkeypatch.setenv("DISABLE_REGISTRATION", "true")
    monkeypatch.setenv("ENABLE_LOCAL_MODE", "no")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com,")
    monkeypatch.setenv("SNIPPET_CONTEXT", "25")

    cfg = config_module.reload_config()

    assert cfg.disable_registration is True
    assert cfg.enable_local_mode is False
    assert cfg.cors_origins == ["https://a.example.com", "https://b.example.com"]
    assert cfg.snippet_context == 25


def test_get_config_rejects_short_jwt_secret(monkeypatch, db_env: Path) -> None:
    monkeypatch.setenv("JWT_SECRET_KEY", "short")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_get_config_rejects_negative_snippet_context(monkeypatch, db_env: Path) -> None:
    monkeypatch.setenv("SNIPPET_CONTEXT", "-1")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_config_is_cached_until_reloaded(monkeypatch, db_env: Path) -> None:
    first = config_module.reload_config()
    monkeypatch.setenv("SNIPPET_CONTEXT", "10")

    assert config_module.get_config() is first
    assert config_module.reload_config().snippet_context == 10
