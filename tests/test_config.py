"""Tests for settings."""
import pytest
from github_browser.config import Settings


def test_defaults():
    settings = Settings.from_env({})

    assert settings.github_token is None
    assert settings.page_size == 20
    assert settings.store_backend == "postgres"
    assert settings.connection_string == (
        "host=localhost port=5432 dbname=github_browser user=postgres password=postgres"
    )


def test_from_env():
    settings = Settings.from_env({
        "GITHUB_TOKEN": "ghp_abc",
        "PAGE_SIZE": "50",
        "STORE_BACKEND": "MEMORY",
        "POSTGRES_HOST": "db",
    })

    assert settings.github_token == "ghp_abc"
    assert settings.page_size == 50
    assert settings.store_backend == "memory"
    assert "host=db" in settings.connection_string


@pytest.mark.parametrize("env", [{"STORE_BACKEND": "sqlite"}, {"PAGE_SIZE": "0"}, {"PAGE_SIZE": "101"}])
def test_invalid_values(env):
    with pytest.raises(ValueError):
        Settings.from_env(env)
