"""
CONSTANTS
---------
Single source of truth for behavioral values in the system.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Audio Format (PCM16 mono)
# =============================================================================

PCM16_SCALE: Final[float] = 32768.0
PCM16_MIN: Final[int] = -32768
PCM16_MAX: Final[int] = 32767
AUDIO_SAMPLE_WIDTH_BYTES: Final[int] = 2
AUDIO_CHANNELS: Final[int] = 1

# Uplink: microphone -> model
CAPTURE_SAMPLE_RATE_HZ: Final[int] = 16_000
CAPTURE_BLOCK_SAMPLES: Final[int] = 4096
CAPTURE_MIME_TYPE: Final[str] = "audio/pcm;rate=16000"

# Downlink: model -> speaker
PLAYBACK_SAMPLE_RATE_HZ: Final[int] = 24_000

# Output device render block (samples per PortAudio callback)
PLAYBACK_BLOCK_SAMPLES: Final[int] = 480

# =============================================================================
# Outbound channel
# =============================================================================

# Frames queued while the live session is still resolving.
# 4096 samples @ 16kHz = 0.256s per frame; 5s holds ~19 frames.
OUTBOUND_QUEUE_MAX_S: Final[float] = 5.0

# =============================================================================
# Live session
# =============================================================================

LIVE_RESPONSE_MODALITIES: Final[tuple[str, ...]] = ("AUDIO",)

# =============================================================================
# Chat
# =============================================================================

CHAT_TEMPERATURE: Final[float] = 0.1
CHAT_HISTORY_WINDOW: Final[int] = 3
MAX_HISTORY_MESSAGES_PER_MODE: Final[int] = 200

METADATA_START_MARKER: Final[str] = "---JSON_START---"
METADATA_END_MARKER: Final[str] = "---JSON_END---"

EMPTY_RESPONSE_TEXT: Final[str] = "I apologize, I could not generate a response."
CHAT_FAILURE_TEXT: Final[str] = (
    "I am experiencing technical difficulties connecting to the legal database. "
    "Please ensure location services are enabled if using Station Finder."
)

ATTACHMENT_PLACEHOLDER_TEXT: Final[str] = "Document attached"
LOCATION_PLACEHOLDER_TEXT: Final[str] = "Locating..."
