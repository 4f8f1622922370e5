"""Shared configuration for the Lumina E2E suite.

The active environment is selected with E2E_ENVIRONMENT:
- local (default): frontend on :4174, services behind the gateway on :3000
- development / staging / production: hosted deployments
- ci: same hosts as local with CI timeouts and retries

Individual values can be overridden through environment variables or the
workspace `.env.e2e` file (see env_defaults.py).
"""
from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Dict, Iterator, List
from urllib.parse import urljoin

from lumina_e2e.env_defaults import get_setting

SERVICE_NAMES = (
    "auth-service",
    "knowledge-base",
    "feedback-service",
    "recommendation-service",
    "learning-resources",
    "question-generator",
    "user-service",
)

FEATURE_FLAGS = (
    "question_generation",
    "recommendations",
    "feedback",
    "multi_language",
)

_TRUE_VALUES = {"1", "true", "yes", "True"}


@dataclass
class RunnerSettings:
    """Browser timing knobs for one environment (milliseconds)."""

    slow_mo: int = 0
    timeout: int = 30000
    retries: int = 1
    workers: int = 4


@dataclass
class EnvironmentProfile:
    """Hosts, service endpoints and feature flags for a deployment."""

    key: str
    name: str
    base_url: str
    api_base_url: str
    services: Dict[str, str] = field(default_factory=dict)
    features: Dict[str, bool] = field(default_factory=dict)
    runner: RunnerSettings = field(default_factory=RunnerSettings)
    required_env: tuple[str, ...] = ()


def _profile(
    key: str,
    name: str,
    base_url: str,
    api_base_url: str,
    runner: RunnerSettings,
    required_env: tuple[str, ...] = (),
) -> EnvironmentProfile:
    return EnvironmentProfile(
        key=key,
        name=name,
        base_url=base_url,
        api_base_url=api_base_url,
        services={service: f"{api_base_url}/{service}" for service in SERVICE_NAMES},
        features={flag: True for flag in FEATURE_FLAGS},
        runner=runner,
        required_env=required_env,
    )


ENVIRONMENTS: Dict[str, EnvironmentProfile] = {
    "local": _profile(
        "local", "Local Development",
        "http://localhost:4174", "http://localhost:3000",
        RunnerSettings(slow_mo=0, timeout=30000, retries=1, workers=4),
    ),
    "development": _profile(
        "development", "Development Server",
        "https://dev.lumina.example.com", "https://api-dev.lumina.example.com",
        RunnerSettings(slow_mo=100, timeout=45000, retries=2, workers=2),
    ),
    "staging": _profile(
        "staging", "Staging Environment",
        "https://staging.lumina.example.com", "https://api-staging.lumina.example.com",
        RunnerSettings(slow_mo=200, timeout=60000, retries=3, workers=1),
        required_env=("STAGING_API_KEY",),
    ),
    "production": _profile(
        "production", "Production Environment",
        "https://lumina.example.com", "https://api.lumina.example.com",
        RunnerSettings(slow_mo=500, timeout=90000, retries=3, workers=1),
        required_env=("PRODUCTION_API_KEY", "PRODUCTION_ADMIN_TOKEN"),
    ),
    "ci": _profile(
        "ci", "CI Environment",
        "http://localhost:4174", "http://localhost:3000",
        RunnerSettings(slow_mo=0, timeout=60000, retries=3, workers=2),
    ),
}


def available_environments() -> List[str]:
    return list(ENVIRONMENTS)


def get_environment_profile(name: str) -> EnvironmentProfile:
    """Return a copy of the named profile or raise with the known names."""
    profile = ENVIRONMENTS.get(name)
    if profile is None:
        raise RuntimeError(
            f"Unknown environment: {name}. Available: {', '.join(available_environments())}"
        )
    return deepcopy(profile)


class E2eConfig:
    """Configuration for one test run.

    Reads E2E_ENVIRONMENT to pick the profile and then applies overrides:
    - E2E_BASE_URL: frontend origin
    - E2E_API_BASE_URL: gateway origin (rebuilds every service URL)
    - PLAYWRIGHT_HEADLESS, PLAYWRIGHT_BROWSER: browser launch options
    - CI, DEBUG_TESTS: run mode flags
    - SCREENSHOT_DIR, UPDATE_BASELINES, VISUAL_THRESHOLD: visual checks
    """

    def __init__(self) -> None:
        env_name = get_setting("E2E_ENVIRONMENT", "local") or "local"
        profile = get_environment_profile(env_name)

        base_url = get_setting("E2E_BASE_URL")
        if base_url:
            profile.base_url = base_url.rstrip("/")
        api_base_url = get_setting("E2E_API_BASE_URL")
        if api_base_url:
            api_base_url = api_base_url.rstrip("/")
            profile.api_base_url = api_base_url
            profile.services = {service: f"{api_base_url}/{service}" for service in SERVICE_NAMES}

        headless_str = get_setting("PLAYWRIGHT_HEADLESS", "true") or "true"
        self.playwright_headless: bool = headless_str.lower() in {"true", "1"}
        self.browser_type: str = get_setting("PLAYWRIGHT_BROWSER", "chromium") or "chromium"

        self.ci: bool = bool(os.getenv("CI"))
        self.debug: bool = (get_setting("DEBUG_TESTS", "") or "") in _TRUE_VALUES

        self.results_dir: str = get_setting("E2E_RESULTS_DIR", "test-results") or "test-results"
        self.screenshot_dir: str = get_setting(
            "SCREENSHOT_DIR", os.path.join(self.results_dir, "screenshots")
        ) or os.path.join(self.results_dir, "screenshots")
        self.update_baselines: bool = (get_setting("UPDATE_BASELINES", "") or "").lower() in {"1", "true", "yes"}
        self.visual_threshold: float = float(get_setting("VISUAL_THRESHOLD", "0.01") or "0.01")

        self._active: EnvironmentProfile = profile

    # ---- active profile helpers -------------------------------------------------
    @property
    def environment(self) -> EnvironmentProfile:
        return self._active

    @property
    def base_url(self) -> str:
        return self._active.base_url

    @property
    def api_base_url(self) -> str:
        return self._active.api_base_url

    @property
    def timeout(self) -> int:
        return self._active.runner.timeout

    @property
    def slow_mo(self) -> int:
        return self._active.runner.slow_mo

    # ---- profile orchestration --------------------------------------------------
    @contextmanager
    def use_environment(self, name: str) -> Iterator[EnvironmentProfile]:
        """Temporarily switch to another environment profile (a copy)."""
        previous = self._active
        self._active = get_environment_profile(name)
        try:
            yield self._active
        finally:
            self._active = previous

    def validate(self) -> None:
        """Fail fast when the active environment needs secrets that are not set."""
        missing = [var for var in self._active.required_env if not os.getenv(var)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables for {self._active.name}: {', '.join(missing)}"
            )

    # ---- utility helpers --------------------------------------------------------
    def url(self, path: str) -> str:
        """Return an absolute frontend URL for the provided path."""
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))

    def service_url(self, service: str) -> str:
        try:
            return self._active.services[service]
        except KeyError:
            raise KeyError(f"Unknown service: {service}") from None

    def graphql_url(self, service: str) -> str:
        return f"{self.service_url(service)}/graphql"

    def health_url(self, service: str) -> str:
        return f"{self.service_url(service)}/health"

    def is_feature_enabled(self, feature: str) -> bool:
        return self._active.features.get(feature, False)

    def describe(self) -> Dict[str, object]:
        """Environment block embedded in run reports."""
        return {
            "ci": self.ci,
            "python": sys.version.split()[0],
            "os": sys.platform,
            "baseUrl": os.getenv("E2E_BASE_URL") or self.base_url,
            "environment": self._active.key,
        }


# Singleton instance - initialized on first import
settings = E2eConfig()
