"""
Gemini chat adapter.

Implements ChatAdapter on top of the google-genai async models client.

Role in the system:
- Sends one user turn (optional inline attachment + serialized prompt)
- Enables the Google Maps tool when requested, biased to the user location
- Returns the answer text and any grounding sources

Architectural constraints:
- No retries, no fallbacks (chat.service decides what a failure means)
- No prompt composition
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

from google import genai
from google.genai import types

from adapters.chat.base import (
    ChatAdapter,
    ChatAdapterError,
    GenerationRequest,
    GenerationResult,
)
from chat.types import GroundingChunk


def extract_grounding_chunks(response: Any) -> tuple[GroundingChunk, ...] | None:
    """
    Pull web/maps grounding sources off the first candidate.

    Returns None when the response carries no grounding chunk list at all,
    so callers can tell "no grounding" from "grounding with zero sources".
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None

    grounding = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(grounding, "grounding_chunks", None)
    if chunks is None:
        return None

    out: list[GroundingChunk] = []
    for chunk in chunks:
        for kind in ("web", "maps"):
            source = getattr(chunk, kind, None)
            if source is None:
                continue
            out.append(GroundingChunk(
                kind=kind,  # type: ignore[arg-type]
                uri=getattr(source, "uri", None) or "",
                title=getattr(source, "title", None) or "",
            ))
    return tuple(out)


def _build_config(request: GenerationRequest) -> types.GenerateContentConfig:
    kwargs: dict[str, Any] = {
        "system_instruction": request.system_instruction,
        "temperature": request.temperature,
    }
    if request.use_maps:
        kwargs["tools"] = [types.Tool(google_maps=types.GoogleMaps())]
        if request.location is not None:
            kwargs["tool_config"] = types.ToolConfig(
                retrieval_config=types.RetrievalConfig(
                    lat_lng=types.LatLng(
                        latitude=request.location.latitude,
                        longitude=request.location.longitude,
                    )
                )
            )
    return types.GenerateContentConfig(**kwargs)


def _build_parts(request: GenerationRequest) -> list[types.Part]:
    parts: list[types.Part] = []
    if request.attachment is not None:
        try:
            data = base64.b64decode(request.attachment.data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ChatAdapterError(f"attachment is not valid base64: {e}") from e
        parts.append(types.Part(
            inline_data=types.Blob(data=data, mime_type=request.attachment.mime_type)
        ))
    parts.append(types.Part(text=request.prompt))
    return parts


class GeminiChatAdapter(ChatAdapter):
    """Single-shot completions against the Gemini models API."""

    def __init__(self, *, client: genai.Client) -> None:
        self._client = client

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        contents = [types.Content(role="user", parts=_build_parts(request))]

        try:
            response = await self._client.aio.models.generate_content(
                model=request.model,
                contents=contents,
                config=_build_config(request),
            )
        except Exception as exc:
            raise ChatAdapterError(f"{type(exc).__name__}: {exc}") from exc

        return GenerationResult(
            text=response.text,
            grounding_chunks=extract_grounding_chunks(response),
        )
