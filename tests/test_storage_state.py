"""Tests for the persisted-state encoding shared with the web app."""

from __future__ import annotations

import json

import pytest

from lumina_e2e.storage import (
    PERSIST_ROOT_KEY,
    SUPPORTED_LANGUAGES,
    decode_persisted_state,
    encode_persisted_state,
    user_settings_state,
)


def test_decode_handles_missing_state():
    assert decode_persisted_state(None) == {}
    assert decode_persisted_state("") == {}


def test_decode_unwraps_nested_json_strings():
    raw = json.dumps(
        {
            "userSettings": json.dumps({"data": {"language": "he"}}),
            "_persist": json.dumps({"version": -1, "rehydrated": True}),
            "plain": "not-json",
        }
    )

    state = decode_persisted_state(raw)

    assert state["userSettings"]["data"]["language"] == "he"
    assert state["_persist"]["rehydrated"] is True
    assert state["plain"] == "not-json"


def test_encode_double_encodes_sub_states_and_adds_persist_meta():
    raw = encode_persisted_state({"userSettings": user_settings_state("es"), "_persist": {"stale": True}})

    outer = json.loads(raw)
    assert isinstance(outer["userSettings"], str)
    assert json.loads(outer["userSettings"])["data"] == {"language": "es"}
    assert json.loads(outer["_persist"]) == {"version": -1, "rehydrated": True}


@pytest.mark.parametrize("language", SUPPORTED_LANGUAGES)
def test_language_survives_encode_decode(language):
    state = decode_persisted_state(encode_persisted_state({"userSettings": user_settings_state(language)}))

    assert state["userSettings"]["data"]["language"] == language


def test_user_settings_shape():
    assert user_settings_state("en") == {
        "data": {"language": "en"},
        "error": None,
        "lastSyncAt": None,
        "isLoading": False,
    }
    assert PERSIST_ROOT_KEY == "persist:lumina-root"
