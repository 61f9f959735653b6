import pytest

from core import config as config_module


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    config_module.get_settings.cache_clear()
    yield
    config_module.get_settings.cache_clear()


def test_non_local_debug_mode_is_blocked(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("DEBUG", "true")

    with pytest.raises(ValueError, match="debug=true"):
        config_module.get_settings()


def test_non_local_plain_http_cluster_is_blocked(monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("APP6A_BASE_URL", "http://api6a.internal/")

    with pytest.raises(ValueError, match="plain http"):
        config_module.get_settings()


def test_local_allows_dev_defaults(monkeypatch):
    monkeypatch.setenv("APP_ENV", "local")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("APP6A_BASE_URL", "http://localhost:8081/")

    settings = config_module.get_settings()
    assert settings.app_env == "local"
    assert settings.app6a_base_url == "http://localhost:8081/"


def test_non_local_plain_http_override_is_blocked(monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("CLUSTER_URLS", '{"app6a": "http://api6a.internal/"}')

    with pytest.raises(ValueError, match="plain http"):
        config_module.get_settings()


def test_local_allows_plain_http_override(monkeypatch):
    monkeypatch.setenv("APP_ENV", "local")
    monkeypatch.setenv("CLUSTER_URLS", '{"app6a": "http://localhost:8081/"}')

    settings = config_module.get_settings()
    assert settings.cluster_url_overrides() == {"app6a": "http://localhost:8081/"}
