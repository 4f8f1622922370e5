"""My Journey tree of course nodes."""
from __future__ import annotations

from typing import List

from playwright.async_api import Locator, Page

from lumina_e2e.pages.base import BasePage, ci, wait_for_first

COMPLETED_NODE_CLASS = "tree-node--style-complete"


class MyJourneyPage(BasePage):
    path = "/my-journey"

    def __init__(self, page: Page) -> None:
        super().__init__(page)
        # tree nodes render as role="treeitem" divs
        self.course_nodes = page.locator('[role="treeitem"]')
        self.loading_message = page.get_by_text(ci(r"loading"))
        self.no_courses_message = page.get_by_text(ci(r"no courses"))

    async def wait_for_page_to_load(self) -> None:
        await self.settle()
        await wait_for_first(
            lambda: self.course_nodes.first.wait_for(state="visible"),
            lambda: self.no_courses_message.wait_for(state="visible"),
        )

    async def get_course_nodes(self) -> List[Locator]:
        return [self.course_nodes.nth(i) for i in range(await self.course_nodes.count())]

    def course_node(self, course_name: str) -> Locator:
        return self.course_nodes.filter(has_text=course_name)

    async def is_course_completed(self, course_name: str) -> bool:
        node = self.course_node(course_name)
        if await node.count() == 0:
            return False
        return COMPLETED_NODE_CLASS in ((await node.first.get_attribute("class")) or "")
