"""
Legal chat service.

Responsibilities:
- Validate and record the user turn in the mode's history
- Compose the GenerationRequest (prompt, model, tools) for the mode
- Call the chat adapter, parse metadata, attach grounding sources
- Turn adapter failures into a fixed apology reply (never raise to callers)
- Record the model reply

NOT responsible for:
- Vendor SDK details (adapters.chat)
- Rendering or persistence beyond the in-memory history
"""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Sequence

from adapters.chat.base import ChatAdapter, GenerationRequest
from chat.metadata import parse_response_metadata
from chat.modes import AppMode
from chat.prompts import FIR_DRAFT_REQUEST_TEMPLATE, build_system_instruction
from chat.types import ChatExchange, ChatReply, ChatRequest, Message, Metadata
from config import AppConfig
from constants import (
    ATTACHMENT_PLACEHOLDER_TEXT,
    CHAT_FAILURE_TEXT,
    CHAT_TEMPERATURE,
    EMPTY_RESPONSE_TEXT,
    LOCATION_PLACEHOLDER_TEXT,
)
from context.conversation import ChatHistory
from context.serialization import serialize_for_model
from observability.logger import log_event
from observability.metrics import timed


class EmptyChatRequest(ValueError):
    """No text, context, location or attachment: nothing to send."""


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def build_generation_request(
    request: ChatRequest,
    history: Sequence[Message],
    *,
    chat_model: str,
    maps_model: str,
) -> GenerationRequest:
    """
    Mode rules:
    - FIR_GENERATOR with context: drafting request replaces the user text
    - STATION_FINDER: maps model + maps tool, biased to request.location
    """
    has_context = bool(request.context)

    request_text = request.text
    if request.mode is AppMode.FIR_GENERATOR and has_context:
        request_text = FIR_DRAFT_REQUEST_TEMPLATE.format(details=request.context)

    use_maps = request.mode is AppMode.STATION_FINDER

    return GenerationRequest(
        model=maps_model if use_maps else chat_model,
        system_instruction=build_system_instruction(
            request.mode, request.language, has_context=has_context
        ),
        prompt=serialize_for_model(history=history, request_text=request_text),
        temperature=CHAT_TEMPERATURE,
        attachment=request.attachment,
        use_maps=use_maps,
        location=request.location if use_maps else None,
    )


class ChatService:
    """One service per process; history is shared by every caller."""

    def __init__(
        self,
        *,
        adapter: ChatAdapter,
        config: AppConfig,
        history: ChatHistory | None = None,
    ) -> None:
        self._adapter = adapter
        self._config = config
        self._history = history if history is not None else ChatHistory()

    @property
    def history(self) -> ChatHistory:
        return self._history

    async def send(self, request: ChatRequest) -> ChatExchange:
        """
        Record the user turn, get a reply, record the reply.

        Raises:
            EmptyChatRequest: nothing to send (history untouched)
        """
        if request.is_empty:
            raise EmptyChatRequest("empty chat request")

        prior = self._history.messages(request.mode)

        user_metadata = None
        if request.attachment is not None:
            user_metadata = Metadata(confidence="HIGH", attachment=request.attachment)

        display_text = request.text or (
            ATTACHMENT_PLACEHOLDER_TEXT if request.attachment is not None
            else LOCATION_PLACEHOLDER_TEXT
        )
        user_message = self._history.add_message(
            request.mode, "user", display_text, user_metadata
        )

        # The model sees the raw request text, not the display placeholder
        pending = Message(
            id=user_message.id,
            role="user",
            text=request.text,
            timestamp_ms=user_message.timestamp_ms,
        )
        reply = await self.complete(request, [*prior, pending])

        model_message = self._history.add_message(
            request.mode, "model", reply.text, reply.metadata
        )
        return ChatExchange(user=user_message, reply=model_message)

    async def complete(self, request: ChatRequest, history: Sequence[Message]) -> ChatReply:
        """Stateless completion: history in, reply out. Never raises."""
        generation = build_generation_request(
            request,
            history,
            chat_model=self._config.chat_model,
            maps_model=self._config.maps_model,
        )

        try:
            with timed(
                "chat_completion_latency",
                details={"mode": request.mode.value, "model": generation.model},
            ):
                result = await self._adapter.generate(generation)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "level": "ERROR",
                "event_type": "CHAT_COMPLETION_FAILED",
                "mode": request.mode.value,
                "model": generation.model,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return ChatReply(text=CHAT_FAILURE_TEXT, metadata=Metadata(confidence="LOW"))

        text, metadata = parse_response_metadata(result.text or EMPTY_RESPONSE_TEXT)

        if result.grounding_chunks is not None:
            if metadata is None:
                metadata = Metadata(confidence="HIGH")
            metadata = replace(metadata, grounding_chunks=result.grounding_chunks)

        return ChatReply(text=text, metadata=metadata)
