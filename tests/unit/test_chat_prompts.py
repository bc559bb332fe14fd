# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from chat.modes import LANGUAGES, AppMode, find_language
from chat.prompts import (
    LIVE_VOICE_SUFFIX,
    MODULE_PROMPTS,
    SYSTEM_PROMPT_V1,
    build_live_instruction,
    build_system_instruction,
)


def test_base_prompt_then_language_setting():
    instruction = build_system_instruction(AppMode.CHAT, "hi")

    assert instruction.startswith(SYSTEM_PROMPT_V1)
    assert instruction.endswith("\n\nCURRENT LANGUAGE SETTING: Hindi.")
    assert "MODULE:" not in instruction


def test_unknown_language_falls_back_to_english():
    assert "CURRENT LANGUAGE SETTING: English." in build_system_instruction(AppMode.CHAT, "xx")


@pytest.mark.parametrize("mode", [
    AppMode.GLOBAL_SEARCH,
    AppMode.IPC_EXPLAINER,
    AppMode.ADR_GUIDE,
    AppMode.LEGAL_DICTIONARY,
    AppMode.BANK_FRAUD,
    AppMode.CONSUMER_RIGHTS,
    AppMode.AADHAAR_SUPPORT,
    AppMode.STATION_FINDER,
    AppMode.FIR_TRACKER,
])
def test_module_prompt_is_appended(mode: AppMode):
    instruction = build_system_instruction(mode, "en")
    assert instruction.endswith("\n\n" + MODULE_PROMPTS[mode])


def test_fir_tracker_gets_portal_guidance():
    instruction = build_system_instruction(AppMode.FIR_TRACKER, "hi")

    assert "CURRENT LANGUAGE SETTING: Hindi." in instruction
    assert "https://digitalpolice.gov.in" in instruction


def test_document_drafter_prompt_needs_form_context():
    without = build_system_instruction(AppMode.FIR_GENERATOR, "en")
    with_context = build_system_instruction(AppMode.FIR_GENERATOR, "en", has_context=True)

    assert "DOCUMENT_DRAFTER" not in without
    assert "DOCUMENT_DRAFTER" in with_context


def test_live_instruction_is_base_prompt_plus_voice_suffix():
    assert build_live_instruction() == SYSTEM_PROMPT_V1 + LIVE_VOICE_SUFFIX


def test_language_table():
    assert [lang.code for lang in LANGUAGES] == [
        "en", "hi", "bn", "te", "mr", "ta", "gu", "kn", "ml", "pa",
    ]
    lang = find_language("ta")
    assert lang is not None and lang.name == "Tamil"
    assert find_language("fr") is None
