"""Sidebar navigation and language switch."""
from __future__ import annotations

from playwright.async_api import Page

from lumina_e2e.pages.base import BasePage, ci
from lumina_e2e.storage import SUPPORTED_LANGUAGES

FLAG_SELECTOR = 'img[src$="us.svg"], img[src$="il.svg"]'


class Sidebar(BasePage):
    def __init__(self, page: Page) -> None:
        super().__init__(page)
        self.universities = page.get_by_role("link", name=ci(r"universities|אוניברסיטאות"))
        self.courses = page.get_by_role("link", name=ci(r"courses|קורסים"))
        self.dashboard = page.get_by_role("link", name=ci(r"dashboard|לוח"))
        self.language_selector = page.get_by_role("combobox")
        self.auth_button = page.get_by_role("button", name=ci(r"login|logout|התחברות|התנתקות"))
        self.degrees = page.get_by_role("link", name=ci(r"degrees|תארים"))
        self.settings = page.get_by_role("link", name=ci(r"settings|preferences|הגדרות"))

    async def wait_for_fully_mounting(self) -> None:
        """The sidebar is mounted once the country flag image is in the DOM."""
        await self.settle()
        await self.page.locator(FLAG_SELECTOR).first.wait_for(state="attached")

    async def goto_universities(self) -> None:
        await self.universities.click()

    async def goto_courses(self) -> None:
        await self.courses.click()

    async def goto_dashboard(self) -> None:
        await self.dashboard.click()
        await self.settle()

    async def goto_degrees(self) -> None:
        await self.degrees.click()
        await self.settle()

    async def goto_settings(self) -> None:
        await self.settings.click()
        await self.settle()

    async def select_language(self, language: str) -> None:
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language!r}")
        await self.language_selector.click()
        await self.page.get_by_role("option", name=language.upper()).click()
        await self.page.locator(f'option[value="{language}"]').wait_for(state="hidden")
        await self.page.get_by_text("ENHE").wait_for(state="detached")

    async def click_auth(self) -> None:
        await self.auth_button.click()
