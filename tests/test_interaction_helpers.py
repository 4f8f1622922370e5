"""Tests for page-object wait helpers and enriched interaction errors."""

from __future__ import annotations

import anyio
import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

from lumina_e2e.debug import InteractionError, describe_locator, interaction
from lumina_e2e.pages.base import parse_percentage, wait_for_first
from lumina_e2e.pages.question import DISLIKE_BUTTON_NAME, LIKE_BUTTON_NAME, is_correct_verdict

pytestmark = pytest.mark.asyncio


class FakeLocator:
    def __init__(self, count=1, visible=True):
        self._count = count
        self._visible = visible

    @property
    def first(self):
        return self

    async def count(self):
        return self._count

    async def is_visible(self):
        return self._visible

    def __str__(self):
        return "<Locator #submit>"


class FakePage:
    url = "http://localhost:4174/login"


async def test_parse_percentage():
    assert parse_percentage("Progress: 45% complete") == 45
    assert parse_percentage("no number") == 0
    assert parse_percentage(None) == 0


async def test_wait_for_first_returns_when_one_waiter_finishes():
    finished = []

    async def slow_timeout():
        await anyio.sleep(5)
        raise PlaywrightTimeout("slow")

    async def quick():
        await anyio.sleep(0.01)
        finished.append("quick")

    with anyio.fail_after(2):
        await wait_for_first(slow_timeout, quick)

    assert finished == ["quick"]


async def test_wait_for_first_tolerates_one_timeout():
    async def times_out():
        raise PlaywrightTimeout("url never changed")

    async def later():
        await anyio.sleep(0.02)

    await wait_for_first(times_out, later)


async def test_wait_for_first_raises_when_all_time_out():
    async def times_out():
        raise PlaywrightTimeout("nope")

    with pytest.raises(PlaywrightTimeout):
        await wait_for_first(times_out, times_out)


async def test_describe_locator():
    info = await describe_locator(FakePage(), FakeLocator(count=2, visible=False))

    assert info == {
        "url": "http://localhost:4174/login",
        "locator": "<Locator #submit>",
        "count": 2,
        "visible": False,
    }


async def test_interaction_enriches_timeouts():
    with pytest.raises(InteractionError) as excinfo:
        async with interaction(FakePage(), FakeLocator(count=0), "click submit"):
            raise PlaywrightTimeout("Timeout 30000ms exceeded.\nwaiting for locator")

    error = excinfo.value
    assert error.action == "click submit"
    assert error.message == "Timeout 30000ms exceeded."
    assert error.payload["count"] == 0
    assert error.payload["visible"] is False
    assert isinstance(error.__cause__, PlaywrightTimeout)
    assert error.args == (str(error),)
    assert str(error).startswith("click submit failed (Timeout 30000ms exceeded.)")


async def test_interaction_passes_other_errors_through():
    with pytest.raises(ValueError):
        async with interaction(FakePage(), FakeLocator(), "fill email"):
            raise ValueError("bad input")


@pytest.mark.parametrize("name", ["Like", "like this question", "Upvote", "Thumbs up"])
async def test_like_button_name_does_not_match_dislike(name):
    assert LIKE_BUTTON_NAME.search(name)
    assert not DISLIKE_BUTTON_NAME.search(name)


@pytest.mark.parametrize("name", ["Dislike", "dislike this question", "Downvote", "Thumbs down"])
async def test_dislike_button_name_does_not_match_like(name):
    assert DISLIKE_BUTTON_NAME.search(name)
    assert not LIKE_BUTTON_NAME.search(name)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Correct! Well done", True),
        ("תשובה נכונה: נכון", True),
        ("Incorrect, try again", False),
        ("That answer is wrong", False),
        ("לא נכון", False),
        ("Answer submitted", False),
    ],
)
async def test_answer_verdict(text, expected):
    assert is_correct_verdict(text) is expected
