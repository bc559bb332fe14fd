"""
Chat history serialization for model consumption.

Responsibilities:
- Render the recent history window + the current request as one text part

Non-responsibilities:
- No history storage
- No logging
- No prompt composition (see chat.prompts)
"""

from __future__ import annotations

from typing import Sequence

from chat.types import Message
from constants import CHAT_HISTORY_WINDOW


def serialize_for_model(
    *,
    history: Sequence[Message],
    request_text: str,
    window: int = CHAT_HISTORY_WINDOW,
) -> str:
    """
    Output format:

        PREVIOUS CONTEXT: <role>: <text>
        <role>: <text>
        ...

        CURRENT REQUEST: <request_text>

    Only the last `window` messages are included, oldest first.
    """
    recent = list(history)[-window:] if window > 0 else []
    previous = "\n".join(f"{m.role}: {m.text}" for m in recent)
    return f"PREVIOUS CONTEXT: {previous}\n\nCURRENT REQUEST: {request_text}"
