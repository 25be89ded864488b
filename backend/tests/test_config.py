import pytest
from pydantic import ValidationError

from session_auth.core.config import DEV_ACCESS_SECRET, DEV_REFRESH_SECRET, Settings, TokenConfig


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_token_config_from_settings(settings):
    config = TokenConfig.from_settings(settings.model_copy(update={"JWT_ACCESS_EXP_SECONDS": 900, "JWT_REFRESH_EXP_DAYS": 2}))

    assert config.access_ttl_seconds == 900
    assert config.refresh_ttl_seconds == 2 * 24 * 60 * 60
    assert config.algorithm == "HS256"


def test_dev_falls_back_to_development_secrets():
    config = TokenConfig.from_settings(_settings(ENV="dev", JWT_ACCESS_SECRET=None, JWT_REFRESH_SECRET=None))

    assert config.access_secret == DEV_ACCESS_SECRET
    assert config.refresh_secret == DEV_REFRESH_SECRET


def test_production_requires_secrets():
    with pytest.raises(RuntimeError):
        TokenConfig.from_settings(_settings(ENV="production", JWT_ACCESS_SECRET=None, JWT_REFRESH_SECRET=None))


def test_access_and_refresh_secrets_must_differ():
    with pytest.raises(ValidationError):
        TokenConfig(access_secret="same-secret-value", refresh_secret="same-secret-value")


def test_cookie_secure_defaults_to_production_flag():
    assert _settings(ENV="production").cookie_secure is True
    assert _settings(ENV="dev").cookie_secure is False
    assert _settings(ENV="dev", COOKIE_SECURE=True).cookie_secure is True


def test_settings_parsing():
    s = _settings(CORS_ORIGINS="https://a.example, https://b.example", LOG_LEVEL="debug", STORE_BACKEND="SQL")

    assert s.CORS_ORIGINS == ["https://a.example", "https://b.example"]
    assert s.LOG_LEVEL == "DEBUG"
    assert s.STORE_BACKEND == "sql"


def test_unknown_store_backend_is_rejected():
    with pytest.raises(ValidationError):
        _settings(STORE_BACKEND="redis")


def test_admin_password_only_defaults_in_dev():
    assert _settings(ENV="test", DEFAULT_ADMIN_PASSWORD=None).admin_password == "admin123"
    assert _settings(ENV="production", DEFAULT_ADMIN_PASSWORD=None).admin_password is None
