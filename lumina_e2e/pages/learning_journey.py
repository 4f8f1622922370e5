"""Learning path view of /my-journey with course blocks and progress."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from playwright.async_api import Locator, Page, TimeoutError as PlaywrightTimeout, expect

from lumina_e2e.pages.base import BasePage, ci, parse_percentage

COURSE_BLOCK = '[data-testid="course-block"]'


@dataclass
class CourseBlock:
    name: str
    status: str
    element: Locator


class LearningJourneyPage(BasePage):
    path = "/my-journey"

    def __init__(self, page: Page) -> None:
        super().__init__(page)
        self.page_title = page.get_by_role("heading", name=ci(r"my journey|learning path"))
        self.course_blocks = page.locator(COURSE_BLOCK)
        self.completed_courses = page.locator(f'{COURSE_BLOCK}[data-status="completed"]')
        self.in_progress_courses = page.locator(f'{COURSE_BLOCK}[data-status="in-progress"]')
        self.locked_courses = page.locator(f'{COURSE_BLOCK}[data-status="locked"]')
        self.progress_overview = page.locator('[data-testid="progress-overview"]')
        self.achievements_badges = page.locator('[data-testid="achievement-badge"]')
        self.continue_studying_button = page.get_by_role("button", name=ci(r"continue studying|resume"))
        self.settings_button = page.get_by_role("button", name=ci(r"settings|preferences"))
        self.search_courses = page.get_by_placeholder(ci(r"search courses|find course"))

    async def goto(self) -> None:
        await self.page.goto(self.path)
        await self.wait_for_page_load()

    async def wait_for_page_load(self) -> None:
        await self.settle()
        await self.page_title.wait_for(state="visible")
        await self.course_blocks.first.wait_for(state="visible")

    def _block(self, course_name: str) -> Locator:
        return self.course_blocks.filter(has_text=course_name)

    async def get_all_courses(self) -> List[CourseBlock]:
        courses = []
        for block in await self.course_blocks.all():
            name = (await block.locator('[data-testid="course-name"]').text_content()) or ""
            status = (await block.get_attribute("data-status")) or "unknown"
            courses.append(CourseBlock(name=name, status=status, element=block))
        return courses

    async def click_course(self, course_name: str) -> None:
        block = self._block(course_name)
        await expect(block).to_be_visible()
        await block.click()
        await self.settle()

    async def get_overall_progress(self) -> int:
        return parse_percentage(await self.progress_overview.text_content())

    async def get_completed_courses_count(self) -> int:
        return await self.completed_courses.count()

    async def get_in_progress_courses_count(self) -> int:
        return await self.in_progress_courses.count()

    async def get_locked_courses_count(self) -> int:
        return await self.locked_courses.count()

    async def continue_studying(self) -> None:
        await self.continue_studying_button.click()
        await self.settle()

    async def search_for_course(self, term: str) -> None:
        await self.search_courses.fill(term)
        await self.settle()

    async def get_achievements(self) -> List[str]:
        achievements = []
        for badge in await self.achievements_badges.all():
            title = (await badge.get_attribute("title")) or (await badge.text_content()) or ""
            if title:
                achievements.append(title)
        return achievements

    async def open_settings(self) -> None:
        await self.settings_button.click()
        await self.settle()

    async def is_course_available(self, course_name: str) -> bool:
        """True when the course block shows up and is not locked."""
        block = self._block(course_name)
        try:
            await block.wait_for(state="visible", timeout=2000)
        except PlaywrightTimeout:
            return False
        return (await block.get_attribute("data-status")) != "locked"

    async def get_course_status(self, course_name: str) -> str:
        return (await self._block(course_name).get_attribute("data-status")) or "unknown"

    async def verify_journey_progression(self) -> None:
        await expect(self.page_title).to_be_visible()
        await expect(self.course_blocks.first).to_be_visible()
        await expect(self.progress_overview).to_be_visible()
        progress = await self.get_overall_progress()
        assert 0 <= progress <= 100, f"Overall progress out of range: {progress}%"
