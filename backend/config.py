"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No protocol constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _device_from_env(name: str) -> int | str | None:
    """sounddevice accepts either a device index or a (partial) device name."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    raw = raw.strip()
    return int(raw) if raw.isdigit() else raw


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the app factory, chat service and live controller.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool

    # ------------------------------------------------------------------
    # Model provider
    # ------------------------------------------------------------------

    gemini_api_key: str | None
    chat_model: str
    maps_model: str
    live_model: str

    # ------------------------------------------------------------------
    # Audio devices (None = system default)
    # ------------------------------------------------------------------

    input_device: int | str | None = None
    output_device: int | str | None = None

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        GEMINI_API_KEY falls back to API_KEY.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",

            gemini_api_key=os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY"),
            chat_model=os.environ.get("CHAT_MODEL", "gemini-3-flash-preview"),
            maps_model=os.environ.get("MAPS_MODEL", "gemini-2.5-flash"),
            live_model=os.environ.get(
                "LIVE_MODEL", "gemini-2.5-flash-native-audio-preview-09-2025"
            ),

            input_device=_device_from_env("AUDIO_INPUT_DEVICE"),
            output_device=_device_from_env("AUDIO_OUTPUT_DEVICE"),
        )
