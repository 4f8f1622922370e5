"""
Browser-side storage contract of the Lumina frontend.

The app persists its redux state under ``persist:lumina-root``. Each
sub-state (``userSettings``, ``auth``, ``_persist``) is itself a JSON string
inside that JSON object. First-visit behaviour is driven by separate flags.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from playwright.async_api import BrowserContext, Page

from lumina_e2e.test_data import TestUser

PERSIST_ROOT_KEY = "persist:lumina-root"
HAS_VISITED_KEY = "lumina-has-visited"
LANGUAGE_SELECTION_SEEN_KEY = "lumina-language-selection-seen"
DEGREE_POPUP_DISMISSED_KEY = "lumina-degree-popup-dismissed"

AUTH_TOKEN_KEY = "auth_token"
USER_DATA_KEY = "user_data"
ONBOARDING_COMPLETED_KEY = "onboarding_completed"

SUPPORTED_LANGUAGES = ("en", "he", "es")

_PERSIST_META = json.dumps({"version": -1, "rehydrated": True})


def decode_persisted_state(raw: Optional[str]) -> Dict[str, Any]:
    """Unwrap the double-encoded persisted root into plain dicts."""
    if not raw:
        return {}
    outer = json.loads(raw)
    decoded: Dict[str, Any] = {}
    for key, value in outer.items():
        if isinstance(value, str):
            try:
                decoded[key] = json.loads(value)
            except ValueError:
                decoded[key] = value
        else:
            decoded[key] = value
    return decoded


def encode_persisted_state(state: Dict[str, Any]) -> str:
    """Inverse of decode_persisted_state."""
    outer = {key: json.dumps(value) for key, value in state.items() if key != "_persist"}
    outer["_persist"] = _PERSIST_META
    return json.dumps(outer)


def user_settings_state(language: str) -> Dict[str, Any]:
    return {
        "data": {"language": language},
        "error": None,
        "lastSyncAt": None,
        "isLoading": False,
    }


async def get_local_storage(page: Page, key: str) -> Optional[str]:
    return await page.evaluate("(key) => window.localStorage.getItem(key)", key)


async def set_local_storage(page: Page, items: Dict[str, str]) -> None:
    await page.evaluate(
        "(items) => { for (const [k, v] of Object.entries(items)) window.localStorage.setItem(k, v); }",
        items,
    )


async def read_persisted_state(page: Page) -> Dict[str, Any]:
    return decode_persisted_state(await get_local_storage(page, PERSIST_ROOT_KEY))


async def write_persisted_state(page: Page, state: Dict[str, Any]) -> None:
    await set_local_storage(page, {PERSIST_ROOT_KEY: encode_persisted_state(state)})


async def read_user_settings(page: Page) -> Dict[str, Any]:
    return (await read_persisted_state(page)).get("userSettings") or {}


async def read_language(page: Page) -> Optional[str]:
    data = (await read_user_settings(page)).get("data") or {}
    return data.get("language")


async def write_user_settings(page: Page, language: str, mark_seen: bool = True) -> None:
    """Persist a language preference the way the app itself stores it.

    Unsupported codes are written as-is so tests can exercise the app's
    fallback handling.
    """
    state = await read_persisted_state(page)
    state["userSettings"] = user_settings_state(language)
    await write_persisted_state(page, state)
    if mark_seen:
        await set_local_storage(page, {LANGUAGE_SELECTION_SEEN_KEY: "true"})


async def mark_first_visit_complete(page: Page, dismiss_degree_popup: bool = True) -> None:
    items = {HAS_VISITED_KEY: "true", LANGUAGE_SELECTION_SEEN_KEY: "true"}
    if dismiss_degree_popup:
        items[DEGREE_POPUP_DISMISSED_KEY] = "true"
    await set_local_storage(page, items)


async def read_visit_flags(page: Page) -> Dict[str, Optional[str]]:
    return {
        "has_visited": await get_local_storage(page, HAS_VISITED_KEY),
        "language_selection_seen": await get_local_storage(page, LANGUAGE_SELECTION_SEEN_KEY),
        "degree_popup_dismissed": await get_local_storage(page, DEGREE_POPUP_DISMISSED_KEY),
    }


async def inject_auth_session(page: Page, user: TestUser, onboarded: bool = False) -> None:
    """Put a token obtained through the API into the page's localStorage.

    The page must already be on the app origin. Reload afterwards so the app
    rehydrates from storage.
    """
    if not user.token:
        raise ValueError(f"User {user.email} has no token; authenticate before injecting a session")

    items = {
        AUTH_TOKEN_KEY: user.token,
        USER_DATA_KEY: json.dumps(user.profile()),
    }
    if onboarded:
        items[ONBOARDING_COMPLETED_KEY] = "true"
    await set_local_storage(page, items)

    state = await read_persisted_state(page)
    state["auth"] = {
        "token": user.token,
        "user": user.profile(),
        "isAuthenticated": True,
    }
    await write_persisted_state(page, state)
    await mark_first_visit_complete(page)


async def clear_browser_state(page: Page, context: BrowserContext) -> None:
    """Wipe local/session storage for the current origin and all cookies."""
    await page.evaluate("() => { window.localStorage.clear(); window.sessionStorage.clear(); }")
    await context.clear_cookies()


async def storage_snapshot(page: Page) -> Dict[str, Dict[str, str]]:
    return await page.evaluate(
        """() => ({
            localStorage: Object.fromEntries(Object.entries(window.localStorage)),
            sessionStorage: Object.fromEntries(Object.entries(window.sessionStorage)),
        })"""
    )
