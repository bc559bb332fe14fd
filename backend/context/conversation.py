"""
Chat history management.

Responsibilities:
- Store ordered user/model messages, one list per AppMode
- Enforce a per-mode bound: drop oldest messages (logged)
- Record user feedback on individual messages

Non-responsibilities:
- No model calls
- No prompt formatting (see context.serialization)
"""

from __future__ import annotations

import time
from uuid import uuid4

from chat.modes import AppMode
from chat.types import FEEDBACK_VALUES, Feedback, Message, Metadata, Role
from constants import MAX_HISTORY_MESSAGES_PER_MODE
from observability.logger import log_event


class MessageNotFound(LookupError):
    """No message with the given id in the given mode."""


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class ChatHistory:
    """
    Mutable per-mode message store owned by the ChatService.

    Invariants:
    - Messages within a mode are in chronological order
    - Message ids are unique across all modes
    """

    def __init__(self, max_per_mode: int = MAX_HISTORY_MESSAGES_PER_MODE) -> None:
        if max_per_mode < 1:
            raise ValueError("max_per_mode must be >= 1")
        self._max_per_mode = max_per_mode
        self._by_mode: dict[AppMode, list[Message]] = {mode: [] for mode in AppMode}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def messages(self, mode: AppMode) -> list[Message]:
        """Snapshot of the mode's history, oldest first."""
        return list(self._by_mode[mode])

    def add_message(
        self,
        mode: AppMode,
        role: Role,
        text: str,
        metadata: Metadata | None = None,
    ) -> Message:
        message = Message(
            id=uuid4().hex,
            role=role,
            text=text,
            timestamp_ms=_now_ms(),
            metadata=metadata,
        )
        self._by_mode[mode].append(message)
        self._truncate(mode)
        return message

    def set_feedback(self, mode: AppMode, message_id: str, feedback: Feedback) -> Message:
        """
        Attach feedback to a message. Setting it again overwrites.

        Raises:
            ValueError: unknown feedback value
            MessageNotFound: no such message in this mode
        """
        if feedback not in FEEDBACK_VALUES:
            raise ValueError(f"unknown feedback: {feedback!r}")

        for message in self._by_mode[mode]:
            if message.id == message_id:
                message.feedback = feedback
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "CHAT_FEEDBACK_RECORDED",
                    "mode": mode.value,
                    "message_id": message_id,
                    "feedback": feedback,
                })
                return message

        raise MessageNotFound(f"{mode.value}/{message_id}")

    def clear(self, mode: AppMode | None = None) -> None:
        """Clear one mode, or every mode when mode is None."""
        modes = [mode] if mode is not None else list(self._by_mode)
        for m in modes:
            self._by_mode[m].clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _truncate(self, mode: AppMode) -> None:
        messages = self._by_mode[mode]
        while len(messages) > self._max_per_mode:
            dropped = messages.pop(0)
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "CHAT_HISTORY_MESSAGE_DROPPED",
                "mode": mode.value,
                "message_id": dropped.id,
                "role": dropped.role,
                "char_count": len(dropped.text),
            })
