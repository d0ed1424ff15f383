import pytest

from restaurant_inspections.core import config

ENV_VARS = (
    "INSPECTIONS_LISTING_URL",
    "INSPECTIONS_DB_PATH",
    "INSPECTIONS_BORDER_LNG",
    "INSPECTIONS_WORKERS",
    "INSPECTIONS_STOP_WORKER_ON_ERROR",
    "INSPECTIONS_GEOCODE_COMMUNITIES",
    "INSPECTIONS_SESSION_COOKIE",
    "INSPECTIONS_REQUEST_TIMEOUT",
    "MAPQUEST_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_get_settings_reads_env(monkeypatch):
    monkeypatch.setenv("INSPECTIONS_DB_PATH", "/tmp/store.json")
    monkeypatch.setenv("INSPECTIONS_BORDER_LNG", "-123.1")
    monkeypatch.setenv("INSPECTIONS_WORKERS", "4")
    monkeypatch.setenv("INSPECTIONS_STOP_WORKER_ON_ERROR", "false")
    monkeypatch.setenv("INSPECTIONS_GEOCODE_COMMUNITIES", "Vancouver - Westside, Richmond")
    monkeypatch.setenv("INSPECTIONS_REQUEST_TIMEOUT", "12.5")
    monkeypatch.setenv("MAPQUEST_API_KEY", "abc123")

    settings = config.get_settings()

    assert settings.db_path == "/tmp/store.json"
    assert settings.border_longitude == -123.1
    assert settings.workers == 4
    assert settings.stop_worker_on_error is False
    assert settings.geocode_communities == ("Vancouver - Westside", "Richmond")
    assert settings.request_timeout == 12.5
    assert settings.mapquest_api_key == "abc123"


def test_get_settings_defaults_and_warns(caplog):
    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    assert "MAPQUEST_API_KEY is not configured" in " ".join(caplog.messages)
    assert settings.listing_url == config.DEFAULT_LISTING_URL
    assert settings.db_path == "restaurants.json"
    assert settings.border_longitude == -123.227883
    assert settings.workers == 16
    assert settings.stop_worker_on_error is True
    assert settings.geocode_communities == ("Vancouver - Westside",)
    assert settings.request_timeout is None


def test_empty_communities_means_all(monkeypatch):
    monkeypatch.setenv("INSPECTIONS_GEOCODE_COMMUNITIES", "")
    assert config.get_settings().geocode_communities == ()


def test_invalid_numbers_raise_config_error(monkeypatch):
    monkeypatch.setenv("INSPECTIONS_WORKERS", "many")
    with pytest.raises(config.ConfigError):
        config.get_settings()


def test_workers_must_be_positive(monkeypatch):
    monkeypatch.setenv("INSPECTIONS_WORKERS", "0")
    with pytest.raises(config.ConfigError):
        config.get_settings()
