"""Course detail page: enrollment and completion actions."""
from __future__ import annotations

from typing import Optional

from playwright.async_api import Page

from lumina_e2e.pages.base import BasePage, ci, wait_for_first


class CoursePage(BasePage):
    def __init__(self, page: Page) -> None:
        super().__init__(page)
        self.enroll_button = page.get_by_role("button", name=ci(r"enroll"))
        self.withdraw_button = page.get_by_role("button", name=ci(r"withdraw"))
        self.mark_as_complete_button = page.get_by_role("button", name=ci(r"mark as complete"))
        self.completed_button = page.get_by_role("button", name=ci(r"completed"))
        self.action_box = page.locator('[data-testid="action-box"]')
        self.course_title = page.locator("h1, h2, h3").first
        self.loading_message = page.get_by_text(ci(r"loading"))

    async def goto_course(self, course_id: str) -> None:
        await self.page.goto(f"/courses/{course_id}")

    async def wait_for_course_to_load(self) -> None:
        await self.settle()
        await wait_for_first(
            lambda: self.course_title.wait_for(state="visible"),
            lambda: self.loading_message.wait_for(state="hidden"),
        )

    async def is_enroll_button_visible(self) -> bool:
        return await self.enroll_button.is_visible()

    async def is_withdraw_button_visible(self) -> bool:
        return await self.withdraw_button.is_visible()

    async def is_mark_as_complete_button_visible(self) -> bool:
        return await self.mark_as_complete_button.is_visible()

    async def is_completed_button_visible(self) -> bool:
        return await self.completed_button.is_visible()

    async def is_action_box_visible(self) -> bool:
        return await self.action_box.is_visible()

    async def click_enroll(self) -> None:
        await self.enroll_button.click()
        await self.settle()

    async def click_withdraw(self) -> None:
        await self.withdraw_button.click()
        await self.settle()

    async def click_mark_as_complete(self) -> None:
        await self.mark_as_complete_button.click()
        await self.settle()

    async def get_course_title(self) -> Optional[str]:
        return await self.course_title.text_content()
