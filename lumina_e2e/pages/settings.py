"""User settings: theme, language and font preferences."""
from __future__ import annotations

import re

from playwright.async_api import Page

from lumina_e2e.pages.base import BasePage, ci
from lumina_e2e.storage import read_user_settings

SETTINGS_URL = re.compile(r"/settings")
SETTING_APPLY_MS = 500


class SettingsPage(BasePage):
    path = "/settings"

    def __init__(self, page: Page) -> None:
        super().__init__(page)
        self.heading = page.get_by_role("heading", name=ci(r"settings|preferences|הגדרות"))
        self.theme_toggle = page.get_by_role("button", name=ci(r"theme|dark mode|light mode"))
        self.language_select = page.get_by_role("combobox", name=ci(r"language|שפה")).or_(
            page.get_by_label(ci(r"language|שפה"))
        )
        self.font_select = page.get_by_role("combobox", name=ci(r"font|גופן|fuente")).or_(
            page.get_by_label(ci(r"font|גופן|fuente"))
        )

    async def wait_for_page_load(self) -> None:
        await self.settle()
        await self.heading.wait_for(state="visible")

    async def current_theme(self) -> str:
        is_dark = await self.page.evaluate("() => document.documentElement.classList.contains('dark')")
        return "dark" if is_dark else "light"

    async def toggle_theme(self) -> str:
        """Flip light/dark and return the theme now applied to the document."""
        await self.theme_toggle.click()
        await self.page.wait_for_timeout(SETTING_APPLY_MS)
        return await self.current_theme()

    async def choose_language(self, option_name: str) -> None:
        await self.language_select.first.click()
        await self.page.get_by_role("option", name=ci(option_name)).click()
        await self.page.wait_for_timeout(SETTING_APPLY_MS)

    async def choose_font(self, option_name: str) -> None:
        await self.font_select.first.click()
        await self.page.get_by_role("option", name=ci(option_name)).click()
        await self.page.wait_for_timeout(SETTING_APPLY_MS)

    async def body_font_family(self) -> str:
        return await self.page.evaluate("() => window.getComputedStyle(document.body).fontFamily")

    async def stored_settings(self) -> dict:
        return (await read_user_settings(self.page)).get("data") or {}
