"""Tests for configuration module."""

from komuness.config import (
    AppConfig,
    CosmosConfig,
    ModerationConfig,
    Settings,
    StorageConfig,
    _env,
    _env_bool,
    _env_int,
)


def test_env_returns_value(monkeypatch):
    monkeypatch.setenv("TEST_KEY", "hello")
    assert _env("TEST_KEY") == "hello"


def test_env_returns_default_when_missing(monkeypatch):
    monkeypatch.delenv("TEST_KEY", raising=False)
    assert _env("TEST_KEY", "fallback") == "fallback"


def test_env_int_parses_and_falls_back(monkeypatch):
    monkeypatch.setenv("TEST_INT", "7")
    assert _env_int("TEST_INT", 3) == 7
    monkeypatch.setenv("TEST_INT", "seven")
    assert _env_int("TEST_INT", 3) == 3
    monkeypatch.delenv("TEST_INT")
    assert _env_int("TEST_INT", 3) == 3


def test_env_bool(monkeypatch):
    monkeypatch.setenv("TEST_FLAG", "Yes")
    assert _env_bool("TEST_FLAG") is True
    monkeypatch.setenv("TEST_FLAG", "0")
    assert _env_bool("TEST_FLAG") is False
    monkeypatch.delenv("TEST_FLAG")
    assert _env_bool("TEST_FLAG", default=True) is True


def test_app_config_environment_flags():
    config = AppConfig.__new__(AppConfig)
    object.__setattr__(config, "env", "production")
    assert config.is_production is True
    assert config.is_development is False


def test_cosmos_config_defaults(monkeypatch):
    monkeypatch.setenv("COSMOS_ENDPOINT", "https://cosmos.example.com")
    monkeypatch.setenv("COSMOS_KEY", "secret")
    monkeypatch.delenv("COSMOS_DATABASE", raising=False)
    config = CosmosConfig()
    assert config.endpoint == "https://cosmos.example.com"
    assert config.key == "secret"
    assert config.database == "komuness"


def test_storage_config_defaults(monkeypatch):
    for key in (
        "AZURE_STORAGE_CONTAINER",
        "UPLOAD_TTL_MINUTES",
        "UPLOAD_SWEEP_SECONDS",
    ):
        monkeypatch.delenv(key, raising=False)
    config = StorageConfig()
    assert config.container == "uploads"
    assert config.upload_ttl_minutes == 60
    assert config.sweep_interval_seconds == 300


def test_moderation_config(monkeypatch):
    monkeypatch.setenv("MODERATION_MAX_EDITS", "5")
    monkeypatch.setenv("MODERATION_STRICT_FIELDS", "true")
    config = ModerationConfig()
    assert config.max_edits == 5
    assert config.strict_fields is True


def test_moderation_config_defaults(monkeypatch):
    monkeypatch.delenv("MODERATION_MAX_EDITS", raising=False)
    monkeypatch.delenv("MODERATION_STRICT_FIELDS", raising=False)
    config = ModerationConfig()
    assert config.max_edits == 3
    assert config.strict_fields is False


def test_settings_creates_all_sub_configs(monkeypatch):
    monkeypatch.setenv("COSMOS_ENDPOINT", "https://cosmos.example.com")
    monkeypatch.setenv("APP_ENV", "test")
    settings = Settings()
    assert settings.cosmos.endpoint == "https://cosmos.example.com"
    assert settings.app.env == "test"
    assert settings.servicebus.topic_name
    assert settings.moderation.max_edits >= 0
