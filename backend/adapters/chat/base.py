"""
Chat adapter contract.

Purpose:
- Define the interface for one-shot (non-streaming) chat completions.
- Keep prompt composition, history, fallbacks and timing OUT of the adapter.

Rules:
- This file contains NO logic.
- No retries.
- No knowledge of modes, history or the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from chat.types import Attachment, GroundingChunk, Location


class ChatAdapterError(RuntimeError):
    """Vendor call failed (transport, auth, quota, bad payload)."""


@dataclass(frozen=True)
class GenerationRequest:
    """
    Fully resolved request. The adapter sends exactly this.

    prompt: serialized history window + current request
    use_maps: enable the maps grounding tool (location biases results)
    """
    model: str
    system_instruction: str
    prompt: str
    temperature: float
    attachment: Attachment | None = None
    use_maps: bool = False
    location: Location | None = None


@dataclass(frozen=True)
class GenerationResult:
    """
    text: None when the model produced no text
    grounding_chunks: None when the response carried no grounding metadata
    """
    text: str | None
    grounding_chunks: tuple[GroundingChunk, ...] | None = None


class ChatAdapter(ABC):
    """
    The adapter is a *dumb pipe*:
    GenerationRequest -> vendor -> GenerationResult.
    """

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Run one completion.

        Contract:
        - Must NOT retry internally.
        - Must raise ChatAdapterError on any vendor failure.
        """
        raise NotImplementedError
