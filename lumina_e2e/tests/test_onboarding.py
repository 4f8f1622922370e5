"""Profile setup during onboarding: selects, search, validation, advanced options and load errors."""
import re

import anyio
import pytest
import pytest_asyncio
from playwright.async_api import Route, expect

from lumina_e2e.pages import LoginPage, OnboardingPage

pytestmark = [pytest.mark.asyncio, pytest.mark.e2e]

UNIVERSITY = "The Open University Of Israel"
DEGREE = "Computer Science"
ONBOARDING_URL = re.compile(r"/onboarding")


async def _sign_in_new_user(page, test_data_manager) -> OnboardingPage:
    user = test_data_manager.generate_user()
    login = LoginPage(page)
    await login.goto()
    await login.login(user.email, user.password)
    return OnboardingPage(page)


def _intercept_graphql(match: str, delay: float = 0.0, abort: bool = False):
    async def handler(route: Route) -> None:
        if match in (route.request.post_data or ""):
            if abort:
                await route.abort("failed")
                return
            await anyio.sleep(delay)
        await route.continue_()

    return handler


@pytest_asyncio.fixture()
async def onboarding(page, test_data_manager):
    onboarding = await _sign_in_new_user(page, test_data_manager)
    await onboarding.wait_for_page_load()
    return onboarding


async def test_university_search_narrows_options(onboarding):
    assert UNIVERSITY in await onboarding.get_university_options()

    await onboarding.search_university("Open")

    options = onboarding.listbox.get_by_role("option")
    await expect(options).to_have_count(1)
    await expect(options.first).to_contain_text("Open University")


async def test_degree_select_unlocks_after_university(onboarding):
    await expect(onboarding.degree_select).to_be_disabled()

    await onboarding.select_institution(UNIVERSITY)

    await expect(onboarding.degree_select).to_be_enabled()
    assert not await onboarding.is_degree_loading()
    assert DEGREE in await onboarding.get_degree_options()


async def test_degree_search(onboarding):
    await onboarding.select_institution(UNIVERSITY)

    await onboarding.search_degree("comp")

    texts = await onboarding.listbox.get_by_role("option").all_text_contents()
    assert any("computer" in text.lower() for text in texts)


async def test_university_is_required(onboarding, page):
    await onboarding.agree_checkbox.check()
    await onboarding.finish_button.click()

    await expect(page).to_have_url(ONBOARDING_URL)
    errors = await onboarding.get_validation_errors()
    assert any(re.search(r"university|אוניברסיטה", error, re.I) for error in errors)


async def test_terms_agreement_is_required(onboarding, page):
    await onboarding.select_institution(UNIVERSITY)
    await onboarding.select_degree(DEGREE)
    await onboarding.finish_button.click()

    await expect(page).to_have_url(ONBOARDING_URL)
    assert await onboarding.get_validation_errors()


async def test_finish_is_possible_without_degree(onboarding, page):
    await onboarding.select_institution(UNIVERSITY)
    assert await onboarding.is_no_degree_message_visible()

    await onboarding.agree_and_finish()

    await expect(page).to_have_url(re.compile(r"/my-journey$"))


async def test_advanced_options_follow_degree_selection(onboarding):
    assert not await onboarding.is_advanced_section_visible()
    await onboarding.select_institution(UNIVERSITY)
    assert not await onboarding.is_advanced_section_visible()

    await onboarding.select_degree(DEGREE)
    assert await onboarding.is_advanced_section_visible()
    assert not await onboarding.is_advanced_options_content_visible()

    await onboarding.toggle_advanced_section()
    assert await onboarding.is_advanced_options_content_visible()

    await onboarding.set_add_all_degree_courses(False)
    await expect(onboarding.add_all_degree_courses_checkbox).not_to_be_checked()
    await onboarding.set_add_all_degree_courses(True)
    await expect(onboarding.add_all_degree_courses_checkbox).to_be_checked()

    await onboarding.agree_checkbox.check()
    assert await onboarding.can_submit()


async def test_university_loading_state(page, test_data_manager):
    await page.route("**/graphql", _intercept_graphql("universities", delay=1.0))
    onboarding = await _sign_in_new_user(page, test_data_manager)

    await expect(onboarding.university_select).to_contain_text(re.compile(r"loading", re.I))
    assert await onboarding.is_university_loading()

    await expect(onboarding.university_select).not_to_contain_text(re.compile(r"loading", re.I), timeout=5000)
    assert not await onboarding.is_university_loading()


async def test_university_load_failure(page, test_data_manager):
    await page.route("**/graphql", _intercept_graphql("universities", abort=True))
    onboarding = await _sign_in_new_user(page, test_data_manager)

    await expect(onboarding.university_select).to_be_disabled(timeout=10000)
    assert await onboarding.has_university_error()


async def test_degree_load_failure(page, test_data_manager):
    await page.route("**/graphql", _intercept_graphql("degrees", abort=True))
    onboarding = await _sign_in_new_user(page, test_data_manager)
    await onboarding.wait_for_page_load()

    await onboarding.select_institution(UNIVERSITY)

    await expect(onboarding.degree_select).to_be_disabled(timeout=10000)
    assert await onboarding.has_degree_error()
