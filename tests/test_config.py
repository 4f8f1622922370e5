"""Tests for environment profiles, settings overrides and .env.e2e defaults."""

from __future__ import annotations

import pytest

from lumina_e2e import env_defaults
from lumina_e2e.config import (
    ENVIRONMENTS,
    SERVICE_NAMES,
    E2eConfig,
    available_environments,
    get_environment_profile,
)

E2E_VARS = (
    "E2E_ENVIRONMENT",
    "E2E_BASE_URL",
    "E2E_API_BASE_URL",
    "PLAYWRIGHT_HEADLESS",
    "DEBUG_TESTS",
    "SCREENSHOT_DIR",
    "UPDATE_BASELINES",
    "VISUAL_THRESHOLD",
    "STAGING_API_KEY",
    "PRODUCTION_API_KEY",
    "PRODUCTION_ADMIN_TOKEN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in E2E_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(env_defaults, "DEFAULTS_FILE", tmp_path / ".env.e2e")
    env_defaults._load_env_defaults.cache_clear()
    yield
    env_defaults._load_env_defaults.cache_clear()


def test_default_environment_is_local():
    config = E2eConfig()

    assert config.environment.key == "local"
    assert config.base_url == "http://localhost:4174"
    assert config.graphql_url("auth-service") == "http://localhost:3000/auth-service/graphql"
    assert config.health_url("user-service") == "http://localhost:3000/user-service/health"
    assert config.playwright_headless is True
    assert config.visual_threshold == 0.01


def test_every_profile_knows_every_service():
    for name in available_environments():
        assert set(get_environment_profile(name).services) == set(SERVICE_NAMES)


def test_unknown_environment_lists_available(monkeypatch):
    monkeypatch.setenv("E2E_ENVIRONMENT", "moon")

    with pytest.raises(RuntimeError, match="Available: local, development"):
        E2eConfig()


def test_profiles_are_copies():
    profile = get_environment_profile("staging")
    profile.base_url = "http://changed"

    assert ENVIRONMENTS["staging"].base_url != "http://changed"


def test_overrides_from_environment(monkeypatch):
    monkeypatch.setenv("E2E_ENVIRONMENT", "ci")
    monkeypatch.setenv("E2E_BASE_URL", "http://frontend:8080/")
    monkeypatch.setenv("E2E_API_BASE_URL", "http://gateway:9000")
    monkeypatch.setenv("PLAYWRIGHT_HEADLESS", "false")
    monkeypatch.setenv("VISUAL_THRESHOLD", "0.05")

    config = E2eConfig()

    assert config.environment.key == "ci"
    assert config.base_url == "http://frontend:8080"
    assert config.service_url("feedback-service") == "http://gateway:9000/feedback-service"
    assert config.playwright_headless is False
    assert config.visual_threshold == 0.05
    assert config.timeout == 60000


def test_env_file_fills_gaps_but_environment_wins(monkeypatch):
    env_defaults.DEFAULTS_FILE.write_text(
        "# local defaults\nE2E_BASE_URL='http://from-file:1'\nE2E_ENVIRONMENT=development\n\nBROKEN LINE\n"
    )
    env_defaults._load_env_defaults.cache_clear()
    monkeypatch.setenv("E2E_ENVIRONMENT", "local")

    config = E2eConfig()

    assert config.environment.key == "local"
    assert config.base_url == "http://from-file:1"


def test_parse_env_file(tmp_path):
    path = tmp_path / "defaults"
    path.write_text('A=1\nB="two words"\n# C=3\nnot a pair\nD=x=y\n')

    assert env_defaults.parse_env_file(path) == {"A": "1", "B": "two words", "D": "x=y"}
    assert env_defaults.parse_env_file(tmp_path / "missing") == {}


def test_validate_requires_production_secrets(monkeypatch):
    monkeypatch.setenv("E2E_ENVIRONMENT", "production")
    config = E2eConfig()

    with pytest.raises(RuntimeError, match="PRODUCTION_API_KEY, PRODUCTION_ADMIN_TOKEN"):
        config.validate()

    monkeypatch.setenv("PRODUCTION_API_KEY", "k")
    monkeypatch.setenv("PRODUCTION_ADMIN_TOKEN", "t")
    config.validate()


def test_use_environment_restores_previous_profile(monkeypatch):
    config = E2eConfig()

    with config.use_environment("staging") as profile:
        assert config.environment is profile
        assert config.base_url == "https://staging.lumina.example.com"
        with pytest.raises(RuntimeError, match="STAGING_API_KEY"):
            config.validate()

    assert config.environment.key == "local"


def test_url_and_unknown_service():
    config = E2eConfig()

    assert config.url("/degrees") == "http://localhost:4174/degrees"
    assert config.url("login") == "http://localhost:4174/login"
    with pytest.raises(KeyError):
        config.service_url("billing-service")


def test_feature_flags_and_describe(monkeypatch):
    monkeypatch.delenv("CI", raising=False)
    config = E2eConfig()

    assert config.is_feature_enabled("feedback") is True
    assert config.is_feature_enabled("teleportation") is False
    described = config.describe()
    assert described["ci"] is False
    assert described["baseUrl"] == "http://localhost:4174"
    assert described["environment"] == "local"
