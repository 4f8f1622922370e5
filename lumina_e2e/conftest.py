import logging
import re
from pathlib import Path

import anyio
import pytest
import pytest_asyncio

from lumina_e2e.api_client import LuminaApiClient
from lumina_e2e.config import settings
from lumina_e2e.debug import DebugHelpers
from lumina_e2e.global_setup import global_setup, global_teardown
from lumina_e2e.pages import LoginPage, OnboardingPage
from lumina_e2e.playwright_client import PlaywrightClient
from lumina_e2e.run_context import RunContext
from lumina_e2e.storage import inject_auth_session
from lumina_e2e.test_data import TestDataManager

logger = logging.getLogger(__name__)

ONBOARDING_UNIVERSITY = "The Open University Of Israel"
ONBOARDING_DEGREE = "Economics"


def _failure_dir() -> Path:
    return Path(settings.results_dir) / "screenshots" / "failures"


def _slug(nodeid: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", nodeid).strip("_")


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item, call):
    """Expose each phase's report as ``item.rep_<phase>`` for fixture teardown."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


@pytest.fixture(scope="session")
def run_context():
    """Global setup before the first browser test, global teardown after the last."""
    ctx = RunContext()
    anyio.run(global_setup, ctx)
    yield ctx
    anyio.run(global_teardown, ctx)


@pytest_asyncio.fixture()
async def playwright_client():
    """Create a Playwright client instance."""
    async with PlaywrightClient() as client:
        yield client


@pytest_asyncio.fixture()
async def context(playwright_client):
    return playwright_client.context


@pytest_asyncio.fixture()
async def page(request, context, run_context):
    """A page whose console and network traffic land in the run context.

    On a failed test a full-page screenshot is stored under
    ``<results>/screenshots/failures/`` and attached as the ``screenshot``
    user property picked up by the CI reporter.
    """
    page = run_context.attach(await context.new_page())
    yield page

    report = getattr(request.node, "rep_call", None)
    if report is None or not report.failed:
        return

    path = _failure_dir() / f"{_slug(request.node.nodeid)}.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        await page.screenshot(path=str(path), full_page=True)
    except Exception as exc:
        logger.warning(f"Failed to capture failure screenshot: {exc}")
    else:
        request.node.user_properties.append(("screenshot", str(path)))

    if settings.debug:
        lines = report.longreprtext.strip().splitlines()
        error = AssertionError(lines[-1] if lines else "test failed")
        debug = DebugHelpers(page, Path(settings.results_dir) / "debug", run_context)
        await debug.capture_debug_info(error, context=request.node.nodeid)


@pytest.fixture()
def test_data_manager():
    """Fresh generator per test; tracking is cleared afterwards."""
    manager = TestDataManager()
    yield manager
    manager.clear_tracked_data()


@pytest_asyncio.fixture()
async def api_client():
    async with LuminaApiClient() as client:
        yield client


@pytest_asyncio.fixture()
async def authenticated_user(run_context, test_data_manager, api_client):
    """A user created and logged in through the API, deleted again afterwards.

    Raises RuntimeError when either backend call fails so the test errors out
    in setup instead of running against a half-created user.
    """
    user = test_data_manager.generate_user()

    created = await api_client.create_user(user)
    if not created.success:
        raise RuntimeError(f"Failed to create test user: {created.error}")
    user.id = created.data["id"]

    auth = await api_client.authenticate_user(user.email, user.password)
    if not auth.success:
        raise RuntimeError(f"Failed to authenticate test user: {auth.error}")
    user.token = auth.data["token"]

    test_data_manager.track_created_data("user", user.id)
    run_context.track_user(user)
    try:
        yield user
    finally:
        result = await api_client.cleanup_test_user(user)
        if result is not None and result.success:
            run_context.forget_user(user)


@pytest_asyncio.fixture()
async def authenticated_page(page, authenticated_user):
    """Page with the user's session injected into localStorage."""
    await page.goto("/")
    await inject_auth_session(page, authenticated_user)
    await page.reload()
    await page.wait_for_load_state("networkidle")
    return page


@pytest_asyncio.fixture()
async def onboarded_user(context, authenticated_user):
    """The authenticated user after completing onboarding through the UI."""
    onboarding_tab = await context.new_page()
    try:
        await onboarding_tab.goto("/login")
        await LoginPage(onboarding_tab).login(authenticated_user.email, authenticated_user.password)

        onboarding = OnboardingPage(onboarding_tab)
        await onboarding.complete(ONBOARDING_UNIVERSITY, ONBOARDING_DEGREE)
        await onboarding_tab.wait_for_url("**/my-journey")
        print(f"[FIXTURE] Onboarded {authenticated_user.email}")
    finally:
        await onboarding_tab.close()
    return authenticated_user


@pytest_asyncio.fixture()
async def onboarded_page(page, onboarded_user):
    """Page with an onboarded user's session injected."""
    await page.goto("/")
    await inject_auth_session(page, onboarded_user, onboarded=True)
    await page.reload()
    await page.wait_for_load_state("networkidle")
    return page
