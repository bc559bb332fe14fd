"""
Assistant modes and supported languages.

Rules:
- Enumerations and static lookup data only.
- No prompt text (see chat.prompts), no behavior.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AppMode(str, Enum):
    """
    Legal-assistance module the user is working in.

    Each mode keeps its own chat history and may add a module prompt.
    """

    CHAT = "CHAT"
    FIR_GENERATOR = "FIR_GENERATOR"
    IPC_EXPLAINER = "IPC_EXPLAINER"
    BANK_FRAUD = "BANK_FRAUD"
    CONSUMER_RIGHTS = "CONSUMER_RIGHTS"
    AADHAAR_SUPPORT = "AADHAAR_SUPPORT"
    STATION_FINDER = "STATION_FINDER"
    FIR_TRACKER = "FIR_TRACKER"
    GLOBAL_SEARCH = "GLOBAL_SEARCH"
    ADR_GUIDE = "ADR_GUIDE"
    LEGAL_DICTIONARY = "LEGAL_DICTIONARY"


@dataclass(frozen=True)
class Language:
    code: str
    name: str
    native_name: str


LANGUAGES: tuple[Language, ...] = (
    Language("en", "English", "English"),
    Language("hi", "Hindi", "हिन्दी"),
    Language("bn", "Bengali", "বাংলা"),
    Language("te", "Telugu", "తెలుగు"),
    Language("mr", "Marathi", "मराठी"),
    Language("ta", "Tamil", "தமிழ்"),
    Language("gu", "Gujarati", "ગુજરાતી"),
    Language("kn", "Kannada", "ಕನ್ನಡ"),
    Language("ml", "Malayalam", "മലയാളം"),
    Language("pa", "Punjabi", "ਪੰਜਾਬੀ"),
)

DEFAULT_LANGUAGE_CODE = "en"

_BY_CODE: dict[str, Language] = {lang.code: lang for lang in LANGUAGES}


def find_language(code: str) -> Language | None:
    """Look up a language by its two-letter code."""
    return _BY_CODE.get(code)
