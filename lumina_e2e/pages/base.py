"""Shared pieces for the page objects."""
from __future__ import annotations

import re
from typing import Any, Awaitable, Callable, List, Optional

import anyio
from playwright.async_api import Page, TimeoutError as PlaywrightTimeout

PERCENT_PATTERN = re.compile(r"(\d+)%")


def ci(pattern: str) -> re.Pattern:
    """Case-insensitive accessible-name pattern."""
    return re.compile(pattern, re.IGNORECASE)


def parse_percentage(text: Optional[str]) -> int:
    if not text:
        return 0
    match = PERCENT_PATTERN.search(text)
    return int(match.group(1)) if match else 0


async def wait_for_first(*waiters: Callable[[], Awaitable[Any]]) -> None:
    """Return once any waiter completes; re-raise the last timeout if all of them time out."""
    timeouts: List[PlaywrightTimeout] = []

    async with anyio.create_task_group() as tg:

        async def run(waiter: Callable[[], Awaitable[Any]]) -> None:
            try:
                await waiter()
            except PlaywrightTimeout as exc:
                timeouts.append(exc)
                return
            tg.cancel_scope.cancel()

        for waiter in waiters:
            tg.start_soon(run, waiter)

    if len(timeouts) == len(waiters):
        raise timeouts[-1]


class BasePage:
    path = "/"

    def __init__(self, page: Page) -> None:
        self.page = page

    async def goto(self) -> None:
        await self.page.goto(self.path)

    async def settle(self) -> None:
        await self.page.wait_for_load_state("networkidle")
