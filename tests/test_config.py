import pytest
from pydantic import ValidationError

from equisplit.config import Settings, get_settings


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@localhost/ledger")
    monkeypatch.setenv("SETTLEMENT_TOLERANCE", "0.05")
    monkeypatch.setenv("STRICT_SETTLEMENT", "true")

    settings = Settings()  # type: ignore[call-arg]

    assert settings.database_url.endswith("/ledger")
    assert settings.settlement_tolerance == 0.05
    assert settings.strict_settlement is True
    assert settings.currency_symbol == "$"
    assert settings.log_level == "INFO"


def test_settings_require_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)  # type: ignore[call-arg]


def test_settings_reject_non_positive_tolerance(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/ledger")
    monkeypatch.setenv("SETTLEMENT_TOLERANCE", "0")
    with pytest.raises(ValidationError):
        Settings()  # type: ignore[call-arg]


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/ledger")
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
