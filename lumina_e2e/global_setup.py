"""Run-level setup and teardown executed once around the whole session."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from playwright.async_api import TimeoutError as PlaywrightTimeout

from lumina_e2e.api_client import LuminaApiClient
from lumina_e2e.config import E2eConfig, settings
from lumina_e2e.playwright_client import PlaywrightClient
from lumina_e2e.run_context import RunContext
from lumina_e2e.storage import clear_browser_state

logger = logging.getLogger(__name__)

SERVICES_TIMEOUT = 120.0
MAIN_CONTENT_SELECTOR = 'main, [role="main"], body > div'

SETUP_COMPLETE_ENV = "E2E_SETUP_COMPLETE"
START_TIME_ENV = "E2E_START_TIME"


async def global_setup(
    ctx: RunContext,
    config: E2eConfig | None = None,
    services_timeout: float = SERVICES_TIMEOUT,
) -> RunContext:
    """Wait for backends, check the frontend renders and start from a clean browser.

    Raises:
        RuntimeError: services not healthy in time or frontend without content
    """
    config = config or settings
    config.validate()
    print(f"[SETUP] Starting global E2E setup against {config.base_url} ({config.environment.name})")

    async with LuminaApiClient(config=config) as api:
        if not await api.wait_for_services(timeout=services_timeout):
            raise RuntimeError("Backend services failed to start within timeout period")
    print("[SETUP] Backend services are ready")

    async with PlaywrightClient(config=config) as client:
        page = ctx.attach(await client.new_page())
        try:
            await page.goto(config.base_url, wait_until="networkidle", timeout=30000)
        except PlaywrightTimeout as exc:
            raise RuntimeError(f"Frontend not reachable at {config.base_url}: {exc}") from exc

        if await page.query_selector(MAIN_CONTENT_SELECTOR) is None:
            raise RuntimeError("Frontend appears to be broken - no main content found")
        print("[SETUP] Frontend is accessible")

        await clear_browser_state(page, client.context)

    ctx.mark_started()
    os.environ[SETUP_COMPLETE_ENV] = "true"
    os.environ[START_TIME_ENV] = ctx.start_time.isoformat()
    print("[SETUP] Global E2E setup completed")
    return ctx


async def cleanup_pending_users(ctx: RunContext, api: LuminaApiClient) -> int:
    """Delete users whose fixtures did not get to clean up. Returns the attempt count."""
    attempted = 0
    for user in list(ctx.pending_users):
        if not user.is_registered:
            continue
        attempted += 1
        result = await api.cleanup_test_user(user)
        if result is not None and result.success:
            ctx.forget_user(user)
    return attempted


async def global_teardown(
    ctx: RunContext,
    config: E2eConfig | None = None,
    summary_path: Path | None = None,
) -> None:
    """Best-effort cleanup; problems are logged and never raised."""
    config = config or settings
    summary_path = summary_path or Path(config.results_dir) / "test-run-summary.json"
    print("[TEARDOWN] Starting global E2E teardown")

    try:
        async with PlaywrightClient(config=config) as client:
            page = await client.new_page()
            await page.goto(config.base_url)
            await clear_browser_state(page, client.context)
    except Exception as exc:
        logger.warning(f"Failed to clear application state: {exc}")

    try:
        async with LuminaApiClient(config=config) as api:
            attempted = await cleanup_pending_users(ctx, api)
        print(
            f"[TEARDOWN] Cleaned up {attempted} test users and "
            f"{len(ctx.data_manager.get_created_data())} data items"
        )
    except Exception as exc:
        logger.warning(f"Failed to cleanup test data: {exc}")

    try:
        if ctx.start_time is not None:
            ctx.write_summary(summary_path)
            print(f"[TEARDOWN] Total test run duration: {ctx.summary()['duration']}")
    except Exception as exc:
        logger.warning(f"Failed to write test run summary: {exc}")
    finally:
        os.environ.pop(SETUP_COMPLETE_ENV, None)
        os.environ.pop(START_TIME_ENV, None)
        ctx.reset()
        print("[TEARDOWN] Global E2E teardown completed")
