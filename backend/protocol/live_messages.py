# backend/protocol/live_messages.py
"""
Live session message records.

Outbound (client -> model), one per captured frame:

    {"media": {"data": "<base64 PCM16>", "mimeType": "audio/pcm;rate=16000"}}

Inbound (model -> client), any combination of:

    {"serverContent": {"modelTurn": {"parts": [{"inlineData": {"data": "<b64>"}}]}}}
    {"serverContent": {"interrupted": true}}

parse_server_message() flattens an inbound record into ordered events:
every audio part in part order, then the interruption (if flagged).
Anything else in the record (turn completion, transcripts, usage) yields
no events.

Usage example:

    for event in parse_server_message(record):
        if isinstance(event, ServerAudio):
            scheduler.schedule(event.data)
        elif isinstance(event, ServerInterrupted):
            scheduler.interrupt()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

from audio.frames import AudioFrame


# -------------------------
# Exceptions
# -------------------------

class LiveProtocolError(Exception):
    """Base class for live message protocol errors."""


class MalformedServerMessage(LiveProtocolError):
    """
    Raised when an inbound record does not have the expected structure
    (not a mapping, or a known key holding the wrong type).

    The record is unsafe to process and must be dropped.
    """


# -------------------------
# Events
# -------------------------

@dataclass(frozen=True)
class ServerAudio:
    """One inline audio part: base64 PCM16 at the playback rate."""
    data: str
    mime_type: str | None = None


@dataclass(frozen=True)
class ServerInterrupted:
    """The user started speaking over the model; cut playback now."""


ServerEvent = Union[ServerAudio, ServerInterrupted]


# -------------------------
# Outbound
# -------------------------

def encode_media_record(frame: AudioFrame) -> dict[str, Any]:
    """Build the outbound realtime-input record for one captured frame."""
    return {
        "media": {
            "data": frame.data,
            "mimeType": frame.mime_type,
        }
    }


# -------------------------
# Inbound
# -------------------------

def _expect_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedServerMessage(f"{where} must be an object, got {type(value).__name__}")
    return value


def parse_server_message(message: Any) -> list[ServerEvent]:
    """
    Flatten one inbound record into ordered events.

    Raises:
        MalformedServerMessage on structural violations.
    """
    record = _expect_mapping(message, "message")

    content = record.get("serverContent")
    if content is None:
        return []
    content = _expect_mapping(content, "serverContent")

    events: list[ServerEvent] = []

    model_turn = content.get("modelTurn")
    if model_turn is not None:
        model_turn = _expect_mapping(model_turn, "serverContent.modelTurn")
        parts = model_turn.get("parts") or []
        if not isinstance(parts, list):
            raise MalformedServerMessage("serverContent.modelTurn.parts must be a list")

        for i, part in enumerate(parts):
            part = _expect_mapping(part, f"parts[{i}]")
            inline = part.get("inlineData")
            if inline is None:
                continue
            inline = _expect_mapping(inline, f"parts[{i}].inlineData")
            data = inline.get("data")
            if not data:
                continue
            if not isinstance(data, str):
                raise MalformedServerMessage(f"parts[{i}].inlineData.data must be a string")
            events.append(ServerAudio(data=data, mime_type=inline.get("mimeType")))

    if content.get("interrupted") is True:
        events.append(ServerInterrupted())

    return events
