"""Question page: answering, navigation and like/dislike feedback."""
from __future__ import annotations

from typing import List

from playwright.async_api import Page, TimeoutError as PlaywrightTimeout, expect

from lumina_e2e.api_client import FEEDBACK_TYPES
from lumina_e2e.pages.base import BasePage, ci

FEEDBACK_SETTLE_MS = 1000

# Role names match as substrings, so "like" must not also hit "Dislike".
LIKE_BUTTON_NAME = ci(r"\b(like|upvote)\b|thumbs up")
DISLIKE_BUTTON_NAME = ci(r"\b(dislike|downvote)\b|thumbs down")
INCORRECT_VERDICT = ci(r"\bincorrect\b|\bwrong\b|לא נכון")
CORRECT_VERDICT = ci(r"\bcorrect\b|נכון")


def is_correct_verdict(text: str) -> bool:
    """Read an answer toast; "incorrect" must not count as "correct"."""
    if INCORRECT_VERDICT.search(text):
        return False
    return bool(CORRECT_VERDICT.search(text))


class QuestionPage(BasePage):
    path = "/questions"

    def __init__(self, page: Page) -> None:
        super().__init__(page)
        self.question_content = page.locator('[data-testid="question-content"]')
        self.answer_options = page.locator('[data-testid="answer-option"]')
        self.submit_button = page.get_by_role("button", name=ci(r"submit|check answer|שלח"))
        self.next_question_button = page.get_by_role("button", name=ci(r"next question|continue"))
        self.like_button = page.get_by_role("button", name=LIKE_BUTTON_NAME)
        self.dislike_button = page.get_by_role("button", name=DISLIKE_BUTTON_NAME)
        self.feedback_message = page.locator(
            '[data-testid="feedback-message"], [data-testid="toast"], .sonner-toast'
        ).first

    async def wait_for_question_load(self) -> None:
        await self.settle()
        await self.question_content.wait_for(state="visible")
        await self.answer_options.first.wait_for(state="visible")

    async def select_answer(self, index: int) -> None:
        """Click the answer at a 0-based index.

        Raises:
            IndexError: fewer options are rendered than ``index`` requires
        """
        options = await self.answer_options.all()
        if index >= len(options):
            raise IndexError(f"Answer index {index} is out of range. Only {len(options)} options available.")
        await options[index].click()

    async def select_answer_by_text(self, text: str) -> None:
        option = self.answer_options.filter(has_text=text)
        await expect(option).to_be_visible()
        await option.click()

    async def submit_answer(self) -> None:
        await self.submit_button.click()
        await self.settle()

    async def answer_question(self, index: int) -> None:
        await self.select_answer(index)
        await self.submit_answer()

    async def answer_question_by_text(self, text: str) -> None:
        await self.select_answer_by_text(text)
        await self.submit_answer()

    async def provide_feedback(self, feedback: str) -> None:
        if feedback not in FEEDBACK_TYPES:
            raise ValueError(f"Unsupported feedback type: {feedback!r}")
        button = self.like_button if feedback == "like" else self.dislike_button
        await button.click()
        await self.page.wait_for_timeout(FEEDBACK_SETTLE_MS)

    async def go_to_next_question(self) -> None:
        await self.next_question_button.click()
        await self.wait_for_question_load()

    async def get_question_text(self) -> str:
        return (await self.question_content.text_content()) or ""

    async def get_answer_options(self) -> List[str]:
        return await self.answer_options.all_text_contents()

    async def is_feedback_provided(self) -> bool:
        try:
            await self.feedback_message.wait_for(state="visible", timeout=2000)
        except PlaywrightTimeout:
            return False
        return True

    async def wait_for_answer_feedback(self) -> None:
        await self.feedback_message.wait_for(state="visible", timeout=5000)

    async def is_answer_correct(self) -> bool:
        await self.wait_for_answer_feedback()
        return is_correct_verdict((await self.feedback_message.text_content()) or "")

    async def navigate_to_question(self) -> None:
        """Open the question list and follow the first question link."""
        await self.goto()
        await self.settle()
        first_link = self.page.locator('a[href*="/questions/"]').first
        await first_link.wait_for(state="visible")
        await first_link.click()
        await self.wait_for_question_load()

    async def is_user_authenticated(self) -> bool:
        try:
            await self.like_button.wait_for(state="visible", timeout=2000)
            return True
        except PlaywrightTimeout:
            login_prompt = self.page.get_by_text(ci(r"^(login|sign in)$")).first
            return not await login_prompt.is_visible()

    async def complete_question_flow(self, index: int, provide_like: bool = True) -> None:
        """Answer, wait for the verdict, optionally like, then move on if possible."""
        await self.answer_question(index)
        await self.wait_for_answer_feedback()
        if provide_like:
            await self.provide_feedback("like")
        if await self.next_question_button.is_visible():
            await self.go_to_next_question()
