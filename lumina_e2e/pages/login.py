"""Login screen."""
from __future__ import annotations

import re
from typing import Tuple

from faker import Faker
from playwright.async_api import Page, TimeoutError as PlaywrightTimeout

from lumina_e2e.debug import interaction
from lumina_e2e.pages.base import BasePage, ci, wait_for_first

POST_LOGIN_URL = re.compile(r"/(onboarding|my-journey|degrees)(/|$)")
POST_LOGIN_TIMEOUT = 15000


class LoginPage(BasePage):
    path = "/login"

    def __init__(self, page: Page) -> None:
        super().__init__(page)
        self.email = page.get_by_label("Email")
        self.password = page.get_by_label("Password")
        self.submit = page.get_by_role("button", name=ci(r"continue|sign in"))
        self.error = page.get_by_role("alert")

    async def login(self, email: str, password: str) -> None:
        """Submit credentials and wait until the SPA shows onboarding or a signed-in route.

        Client-side routing may not trigger a navigation, so the university
        select appearing counts as well. When neither happens in time the page
        is only left to go network idle; callers assert on the outcome.
        """
        async with interaction(self.page, self.email, "fill email") as field:
            await field.fill(email)
        async with interaction(self.page, self.password, "fill password") as field:
            await field.fill(password)
        async with interaction(self.page, self.submit, "submit login") as button:
            await button.click()

        try:
            await wait_for_first(
                lambda: self.page.locator("#university-select").wait_for(
                    state="visible", timeout=POST_LOGIN_TIMEOUT
                ),
                lambda: self.page.wait_for_url(POST_LOGIN_URL, timeout=POST_LOGIN_TIMEOUT),
            )
        except PlaywrightTimeout:
            try:
                await self.settle()
            except PlaywrightTimeout:
                pass

    async def auto_login(self) -> Tuple[str, str]:
        """Log in with throwaway Faker credentials; returns them."""
        fake = Faker()
        email, password = fake.email(), fake.password()
        await self.login(email, password)
        return email, password
