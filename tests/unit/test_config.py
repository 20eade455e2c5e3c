"""Test configuration module"""

from pathlib import Path

from nimbus_search.config import (
    Settings,
    clear_settings_cache,
    get_settings,
    override_settings,
)


def test_settings_from_environment(monkeypatch) -> None:
    """Settings are built from NIMBUS_SEARCH_* variables."""
    monkeypatch.setenv("NIMBUS_SEARCH_STORAGE_DIR", "/tmp/nimbus")
    monkeypatch.setenv("NIMBUS_SEARCH_HISTORY_LIMIT", "10")
    monkeypatch.setenv("NIMBUS_SEARCH_DEFAULT_PAGE_SIZE", "25")
    monkeypatch.setenv("NIMBUS_SEARCH_VIRTUALIZATION_THRESHOLD", "1000")

    settings = get_settings(refresh=True)

    assert settings.storage_dir == Path("/tmp/nimbus")
    assert settings.history_limit == 10
    assert settings.default_page_size == 25
    assert settings.virtualization_threshold == 1000
    assert settings.is_testing
    assert not settings.is_development


def test_settings_defaults(monkeypatch) -> None:
    monkeypatch.delenv("NIMBUS_SEARCH_ENVIRONMENT")
    monkeypatch.delenv("NIMBUS_SEARCH_LOG_LEVEL")

    settings = Settings()

    assert settings.history_limit == 50
    assert settings.default_page_size == 50
    assert settings.virtualization_threshold == 500
    assert settings.log_level == "INFO"
    assert settings.log_dir is None
    assert settings.environment == "production"


def test_get_settings_is_cached() -> None:
    first = get_settings()
    assert get_settings() is first

    clear_settings_cache()
    assert get_settings() is not first


def test_override_settings_restores_previous() -> None:
    previous = get_settings()

    with override_settings(default_page_size=7) as patched:
        assert patched.default_page_size == 7
        assert get_settings() is patched

    assert get_settings() is previous
