"""Degrees list and degree detail pages."""
from __future__ import annotations

from typing import List, Optional

from playwright.async_api import Locator, Page

from lumina_e2e.pages.base import BasePage, ci


class DegreesPage(BasePage):
    """Handles both the degrees table and a single degree's page."""

    path = "/degrees"

    def __init__(self, page: Page) -> None:
        super().__init__(page)
        # list page
        self.page_title = page.get_by_role("heading", name=ci(r"degrees|תארים"))
        self.degrees_table = page.get_by_role("table")
        self.degree_rows = page.get_by_role("row")
        self.no_degrees_message = page.get_by_text(ci(r"no degrees available|אין תארים זמינים"))
        self.loading_message = page.get_by_text(ci(r"loading|טוען"))
        self.error_message = page.get_by_text(ci(r"error loading degrees|שגיאה בטעינת תארים"))
        self.degree_header = page.get_by_role("columnheader", name=ci(r"degree|תואר"))
        self.university_header = page.get_by_role("columnheader", name=ci(r"university|אוניברסיטה"))
        self.courses_header = page.get_by_role("columnheader", name=ci(r"courses|קורסים"))

        # detail page
        self.degree_name = page.get_by_role("heading", level=1)
        self.university_name = page.get_by_role("heading", level=2)
        self.courses_count = page.get_by_text(ci(r"degree courses|קורסי תואר"))
        self.no_courses_message = page.get_by_text(ci(r"no courses available|אין קורסים זמינים"))
        self.degree_flow = page.get_by_test_id("degree-flow")

    async def goto(self) -> None:
        await self.page.goto(self.path)
        await self.settle()

    async def goto_degree(self, degree_id: str) -> None:
        await self.page.goto(f"{self.path}/{degree_id}")
        await self.settle()

    def degree_links(self) -> Locator:
        return self.page.locator('a[href^="/degrees/"]')

    def degree_row(self, degree_name: str) -> Locator:
        return self.page.get_by_role("row").filter(has_text=degree_name)

    def degree_link_in_row(self, degree_name: str) -> Locator:
        return self.degree_row(degree_name).get_by_role("link")

    def university_for_degree(self, degree_name: str) -> Locator:
        return self.degree_row(degree_name).get_by_role("cell").nth(1)

    def courses_count_for_degree(self, degree_name: str) -> Locator:
        return self.degree_row(degree_name).get_by_role("cell").nth(2)

    async def click_degree(self, degree_name: str) -> None:
        """Open a degree from the table, or from a plain link list when no table is rendered."""
        if await self.degrees_table.count() > 0:
            await self.degree_link_in_row(degree_name).click()
        else:
            await self.page.get_by_role("link").filter(has_text=degree_name).click()
        await self.page.wait_for_url(lambda url: "/degrees/" in url)
        await self.settle()

    async def wait_for_degrees_content(self) -> None:
        if await self.degrees_table.count() > 0:
            await self.degrees_table.wait_for(state="visible")
        else:
            await self.page_title.wait_for(state="visible")
            await self.page.get_by_role("link").first.wait_for(state="visible")

    async def wait_for_degrees_table(self) -> None:
        await self.degrees_table.wait_for(state="visible")

    async def wait_for_degree_flow(self) -> None:
        await self.degree_flow.wait_for(state="visible")

    async def is_in_loading_state(self) -> bool:
        return await self.loading_message.is_visible()

    async def is_in_error_state(self) -> bool:
        return await self.error_message.is_visible()

    async def has_no_degrees(self) -> bool:
        return await self.no_degrees_message.is_visible()

    async def has_no_courses(self) -> bool:
        return await self.no_courses_message.is_visible()

    async def get_degrees_count(self) -> int:
        # header row excluded
        return max(0, await self.degree_rows.count() - 1)

    async def get_degree_names(self) -> List[str]:
        return [name.strip() for name in await self.degree_links().all_text_contents() if name.strip()]

    async def get_current_degree_name(self) -> Optional[str]:
        return await self.degree_name.text_content()

    async def get_current_university_name(self) -> Optional[str]:
        return await self.university_name.text_content()

    async def get_current_courses_count_text(self) -> Optional[str]:
        return await self.courses_count.text_content()
