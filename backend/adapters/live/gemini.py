"""
Gemini Live adapter.

Implements LiveConnector on top of the google-genai async live client.

Role in the system:
- Opens one live session per connect() with audio-only responses and the
  configured system instruction.
- Runs a single receive task that converts SDK messages into wire-shaped
  records (base64 inline audio, camelCase keys) and hands them to
  callbacks.on_message.
- Sends outbound media records as realtime input blobs.

Architectural constraints:
- No retries, reconnects or backpressure.
- No playback or capture logic.
- Lifecycle decisions live in session.controller.
"""

from __future__ import annotations

import asyncio
import base64
import time
from typing import Any

from google import genai
from google.genai import types

from adapters.live.base import (
    LiveCallbacks,
    LiveConnector,
    LiveSessionError,
    LiveSessionHandle,
)
from constants import LIVE_RESPONSE_MODALITIES
from observability.logger import log_event


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def server_message_to_record(message: Any) -> dict[str, Any]:
    """
    Convert an SDK LiveServerMessage into the wire record shape.

    Works on any object exposing the SDK attribute names
    (server_content.model_turn.parts[].inline_data.data / .interrupted).
    """
    content = getattr(message, "server_content", None)
    if content is None:
        return {}

    record: dict[str, Any] = {}

    model_turn = getattr(content, "model_turn", None)
    parts = getattr(model_turn, "parts", None) or []
    wire_parts: list[dict[str, Any]] = []
    for part in parts:
        inline = getattr(part, "inline_data", None)
        data = getattr(inline, "data", None)
        if not data:
            continue
        wire_parts.append({
            "inlineData": {
                "data": base64.b64encode(data).decode("ascii"),
                "mimeType": getattr(inline, "mime_type", None),
            }
        })
    if wire_parts:
        record["modelTurn"] = {"parts": wire_parts}

    if getattr(content, "interrupted", None):
        record["interrupted"] = True
    if getattr(content, "turn_complete", None):
        record["turnComplete"] = True

    return {"serverContent": record}


class GeminiLiveSession(LiveSessionHandle):
    """Handle around one open google-genai live session."""

    def __init__(
        self,
        *,
        session_cm: Any,
        session: Any,
        callbacks: LiveCallbacks,
    ) -> None:
        self._session_cm = session_cm
        self._session = session
        self._callbacks = callbacks
        self._closed = False
        self._receive_task: asyncio.Task[None] | None = None

    def start_receiving(self) -> None:
        self._receive_task = asyncio.create_task(self._receive_loop())

    async def _receive_loop(self) -> None:
        reason: str | None = "remote_closed"
        try:
            while not self._closed:
                received_any = False
                async for message in self._session.receive():
                    received_any = True
                    record = server_message_to_record(message)
                    if record:
                        self._callbacks.on_message(record)
                if not received_any:
                    # receive() returned without yielding: stream is gone
                    break
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            if self._closed:
                return
            reason = "receive_error"
            self._callbacks.on_error(LiveSessionError(f"{type(exc).__name__}: {exc}"))
        if not self._closed:
            self._callbacks.on_close(reason)

    async def send_media(self, record: dict[str, Any]) -> None:
        media = record["media"]
        await self._session.send_realtime_input(
            audio=types.Blob(
                data=base64.b64decode(media["data"]),
                mime_type=media["mimeType"],
            )
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        task = self._receive_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self._session_cm.__aexit__(None, None, None)


class GeminiLiveConnector(LiveConnector):
    """
    Opens Gemini Live sessions.

    One client instance may serve many sequential sessions.
    """

    def __init__(self, *, client: genai.Client) -> None:
        self._client = client

    async def connect(
        self,
        *,
        model: str,
        system_instruction: str,
        callbacks: LiveCallbacks,
    ) -> LiveSessionHandle:
        config = types.LiveConnectConfig(
            response_modalities=[types.Modality(m) for m in LIVE_RESPONSE_MODALITIES],
            system_instruction=system_instruction,
        )

        session_cm = self._client.aio.live.connect(model=model, config=config)
        try:
            session = await session_cm.__aenter__()
        except Exception as exc:
            raise LiveSessionError(f"live connect failed: {type(exc).__name__}: {exc}") from exc

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "LIVE_SESSION_CONNECTED",
            "model": model,
        })

        handle = GeminiLiveSession(
            session_cm=session_cm,
            session=session,
            callbacks=callbacks,
        )
        callbacks.on_open()
        handle.start_receiving()
        return handle
