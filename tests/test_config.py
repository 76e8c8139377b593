import pytest

from garden_site.config import db_name_from_uri, load_config


def test_missing_jwt_secret_refuses_to_start(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(RuntimeError, match="jwt_secret_missing"):
        load_config()


def test_invalid_expiry_rejected(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "x")
    monkeypatch.setenv("JWT_EXPIRES_IN", "forever")
    with pytest.raises(ValueError):
        load_config()


def test_load_config_from_env(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "x")
    monkeypatch.delenv("JWT_EXPIRES_IN", raising=False)
    monkeypatch.delenv("MONGODB_URI", raising=False)
    monkeypatch.delenv("MONGODB_DB_NAME", raising=False)
    monkeypatch.setenv("DATABASE_URL", "mongodb://db.internal:27017/gardens")
    monkeypatch.setenv("ADMIN_REGISTER", "yes")
    monkeypatch.setenv("PORT", "8080")

    cfg = load_config()
    assert cfg.JWT_SECRET == "x"
    assert cfg.JWT_EXPIRES_IN == "24h"
    assert cfg.DB_URI == "mongodb://db.internal:27017/gardens"
    assert cfg.DB_NAME == "gardens"
    assert cfg.ADMIN_REGISTER is True
    assert cfg.PORT == 8080


def test_db_name_from_uri():
    assert db_name_from_uri("mongodb://localhost:27017/site?retryWrites=true") == "site"
    assert db_name_from_uri("mongodb://localhost:27017") is None
    assert db_name_from_uri("mongodb://localhost:27017/") is None


def test_env_bool(monkeypatch):
    from garden_site.config import _env_bool

    for raw, expected in (("YES", True), (" on ", True), ("0", False), ("off", False), ("maybe", None)):
        monkeypatch.setenv("SOME_FLAG", raw)
        assert _env_bool("SOME_FLAG") is expected
    monkeypatch.delenv("SOME_FLAG")
    assert _env_bool("SOME_FLAG", True) is True
