"""
Direct Playwright client for the Lumina suite.

Launches Playwright in-process and hands out pages/contexts pre-configured for
the active environment: base URL, viewport, locale, slow-mo and default
timeout.

Usage:
    from lumina_e2e.playwright_client import playwright_session

    async with playwright_session() as page:
        await page.goto("/login")
        await page.get_by_label("Email").fill("someone@example.com")
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from lumina_e2e.config import E2eConfig, settings

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 720}


class PlaywrightClient:
    """
    Owns one Playwright driver, one browser and one default context.

    Example:
        async with PlaywrightClient() as client:
            page = await client.new_page()
            await page.goto("/degrees")
    """

    def __init__(
        self,
        config: E2eConfig | None = None,
        browser_type: Optional[str] = None,
        headless: Optional[bool] = None,
        locale: str = "en-US",
        viewport: Optional[Dict[str, int]] = None,
    ):
        """
        Args:
            config: Run configuration (default: module settings)
            browser_type: chromium, firefox or webkit (default from PLAYWRIGHT_BROWSER)
            headless: Run headless (default from PLAYWRIGHT_HEADLESS)
            locale: Browser locale for new contexts
            viewport: Viewport for new contexts
        """
        self.config = config or settings
        self.browser_type = browser_type or self.config.browser_type
        self.headless = self.config.playwright_headless if headless is None else headless
        self.locale = locale
        self.viewport = viewport or dict(DEFAULT_VIEWPORT)

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> "PlaywrightClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def connect(self) -> None:
        """Launch the browser and create the default context."""
        self._playwright = await async_playwright().start()

        launcher = {
            "firefox": self._playwright.firefox,
            "webkit": self._playwright.webkit,
        }.get(self.browser_type, self._playwright.chromium)
        self._browser = await launcher.launch(headless=self.headless, slow_mo=self.config.slow_mo)
        logger.debug(f"Launched {self.browser_type} (headless={self.headless})")

        self._context = await self.new_context()

    def context_options(self, **overrides: Any) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "base_url": self.config.base_url,
            "viewport": self.viewport,
            "locale": self.locale,
        }
        options.update(overrides)
        return options

    async def new_context(self, **kwargs: Any) -> BrowserContext:
        """Create an isolated context (own cookies and localStorage)."""
        if not self._browser:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")

        context = await self._browser.new_context(**self.context_options(**kwargs))
        context.set_default_timeout(self.config.timeout)
        return context

    async def new_page(self) -> Page:
        """Create a new page in the default context."""
        if not self._context:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")
        return await self._context.new_page()

    async def close(self) -> None:
        """Close context, browser and driver."""
        if self._context:
            await self._context.close()
            self._context = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @property
    def browser(self) -> Browser:
        if not self._browser:
            raise RuntimeError("Client not connected")
        return self._browser

    @property
    def context(self) -> BrowserContext:
        if not self._context:
            raise RuntimeError("Client not connected")
        return self._context


@asynccontextmanager
async def playwright_session(config: E2eConfig | None = None) -> AsyncIterator[Page]:
    """Yield a fresh page; browser and driver are closed on exit."""
    client = PlaywrightClient(config=config)
    await client.connect()
    try:
        yield await client.new_page()
    finally:
        await client.close()
