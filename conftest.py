"""
Project-wide pytest configuration.

- ``--run-e2e`` enables the browser journeys under ``lumina_e2e/tests``
  (marked ``e2e``); without it they are skipped and only the offline suite
  in ``tests/`` runs.
- ``--ci-report`` (or a set ``CI`` variable) registers the CI reporter that
  writes JSON, markdown and JUnit reports to the results directory.
"""
import logging
import os
from pathlib import Path

import pytest

from lumina_e2e.config import settings
from lumina_e2e.reporter import CIReporter

CI_REPORTER_NAME = "lumina-ci-reporter"

pytest_plugins = ["pytester"]


def pytest_addoption(parser):
    group = parser.getgroup("lumina-e2e")
    group.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="run browser journeys against a live Lumina deployment",
    )
    group.addoption(
        "--ci-report",
        action="store_true",
        default=False,
        help="write CI reports (JSON, markdown, JUnit) after the run",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "e2e: browser journey against a running deployment (needs --run-e2e)")
    config.addinivalue_line("markers", "visual: screenshot comparison against stored baselines")
    config.addinivalue_line("markers", "slow: journeys that take noticeably longer than the rest")

    if settings.debug:
        logging.getLogger("lumina_e2e").setLevel(logging.DEBUG)

    if config.getoption("--ci-report") or os.getenv("CI"):
        if not config.pluginmanager.has_plugin(CI_REPORTER_NAME):
            reporter = CIReporter(Path(settings.results_dir), environment=settings.describe())
            config.pluginmanager.register(reporter, CI_REPORTER_NAME)


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="browser journey; pass --run-e2e to run")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)
