"""Onboarding (profile setup) screen with the listbox-style selects."""
from __future__ import annotations

from typing import List

from playwright.async_api import Locator, Page

from lumina_e2e.pages.base import BasePage, ci

SEARCH_INPUT = 'input[placeholder*="search" i], input[placeholder*="חיפוש" i]'
SEARCH_DEBOUNCE_MS = 500

VALIDATION_PATTERNS = (
    r"university.*required",
    r"degree.*required",
    r"terms.*required",
    r"אוניברסיטה.*נדרש",
    r"תואר.*נדרש",
    r"הסכם.*נדרש",
)


class OnboardingPage(BasePage):
    path = "/onboarding"

    def __init__(self, page: Page) -> None:
        super().__init__(page)
        self.university_select = page.locator("#profile-university-select")
        self.degree_select = page.locator("#profile-degree-select")
        self.agree_checkbox = page.locator("#profile-terms-agreement")
        self.finish_button = page.get_by_role("button", name=ci(r"finish|סיים"))
        self.advanced_section_button = page.locator("#profile-advanced-toggle")
        self.add_all_degree_courses_checkbox = page.locator("#profile-add-all-courses")
        self.listbox = page.locator('[role="listbox"]')

    async def _choose(self, select: Locator, name: str) -> None:
        await select.click()
        await self.listbox.wait_for(state="visible")
        await self.page.locator('[role="option"]', has_text=name).click()
        await self.listbox.wait_for(state="hidden")

    async def select_institution(self, name: str) -> None:
        await self._choose(self.university_select, name)

    async def select_degree(self, name: str) -> None:
        await self._choose(self.degree_select, name)

    async def _search(self, select: Locator, term: str) -> None:
        await select.click()
        await self.listbox.wait_for(state="visible")
        await self.page.locator(SEARCH_INPUT).fill(term)
        await self.page.wait_for_timeout(SEARCH_DEBOUNCE_MS)

    async def search_university(self, term: str) -> None:
        await self._search(self.university_select, term)

    async def search_degree(self, term: str) -> None:
        await self._search(self.degree_select, term)

    async def _options(self, select: Locator) -> List[str]:
        await select.click()
        await self.listbox.wait_for(state="visible")
        texts = await self.page.locator('[role="option"]').all_text_contents()
        await self.page.keyboard.press("Escape")
        return texts

    async def get_university_options(self) -> List[str]:
        return await self._options(self.university_select)

    async def get_degree_options(self) -> List[str]:
        return await self._options(self.degree_select)

    async def is_university_loading(self) -> bool:
        return "loading" in ((await self.university_select.text_content()) or "").lower()

    async def is_degree_loading(self) -> bool:
        return "loading" in ((await self.degree_select.text_content()) or "").lower()

    async def has_university_error(self) -> bool:
        message = self.page.get_by_text(ci(r"failed to load.*university")).or_(
            self.page.get_by_text(ci(r"error.*university"))
        )
        return await message.first.is_visible()

    async def has_degree_error(self) -> bool:
        message = self.page.get_by_text(ci(r"failed to load.*degree")).or_(
            self.page.get_by_text(ci(r"error.*degree"))
        )
        return await message.first.is_visible()

    async def agree_and_finish(self) -> None:
        await self.agree_checkbox.check()
        await self.finish_button.click()

    async def toggle_advanced_section(self) -> None:
        await self.advanced_section_button.click()

    async def set_add_all_degree_courses(self, checked: bool) -> None:
        if await self.add_all_degree_courses_checkbox.is_checked() != checked:
            await self.add_all_degree_courses_checkbox.click()

    async def is_no_degree_message_visible(self) -> bool:
        message = (
            self.page.locator("#profile-no-degree-message")
            .or_(self.page.get_by_text(ci(r"you can always add")))
            .or_(self.page.get_by_text(ci(r"תוכל תמיד להוסיף")))
        )
        return await message.first.is_visible()

    async def is_advanced_section_visible(self) -> bool:
        return await self.advanced_section_button.is_visible()

    async def is_advanced_options_content_visible(self) -> bool:
        return await self.add_all_degree_courses_checkbox.is_visible()

    async def get_validation_errors(self) -> List[str]:
        """Visible required-field messages, English or Hebrew."""
        errors = []
        for pattern in VALIDATION_PATTERNS:
            element = self.page.get_by_text(ci(pattern)).first
            if await element.is_visible():
                text = await element.text_content()
                if text:
                    errors.append(text)
        return errors

    async def wait_for_page_load(self) -> None:
        await self.settle()
        await self.university_select.wait_for(state="visible")
        await self.agree_checkbox.wait_for(state="visible")
        await self.finish_button.wait_for(state="visible")

    async def can_submit(self) -> bool:
        return await self.finish_button.is_enabled()

    async def complete(self, university: str, degree: str) -> None:
        """Pick university and degree, accept the terms and finish."""
        await self.select_institution(university)
        await self.select_degree(degree)
        await self.agree_and_finish()
