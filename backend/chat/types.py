"""
Chat data model.

Rules:
- Plain dataclasses, no behavior beyond (de)serialization helpers.
- to_dict() output uses the client's field names (camelCase) so the
  HTTP layer can return it unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

from chat.modes import AppMode, DEFAULT_LANGUAGE_CODE


Confidence = Literal["HIGH", "MEDIUM", "LOW"]
Role = Literal["user", "model"]
Feedback = Literal["positive", "negative", "reported"]

CONFIDENCE_VALUES: tuple[str, ...] = ("HIGH", "MEDIUM", "LOW")
FEEDBACK_VALUES: tuple[str, ...] = ("positive", "negative", "reported")


# ------------------------------------------------------------------
# Metadata pieces
# ------------------------------------------------------------------

@dataclass(frozen=True)
class Citation:
    act: str = ""
    section: str = ""
    title: str = ""
    url: str = ""

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> Citation:
        return Citation(
            act=str(data.get("act", "")),
            section=str(data.get("section", "")),
            title=str(data.get("title", "")),
            url=str(data.get("url", "")),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "act": self.act,
            "section": self.section,
            "title": self.title,
            "url": self.url,
        }


@dataclass(frozen=True)
class GroundingChunk:
    """A web or maps source the model grounded its answer on."""
    kind: Literal["web", "maps"]
    uri: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {self.kind: {"uri": self.uri, "title": self.title}}


@dataclass(frozen=True)
class Attachment:
    """User-supplied document: base64 payload + MIME type."""
    data: str
    mime_type: str

    def to_dict(self) -> dict[str, str]:
        return {"data": self.data, "mimeType": self.mime_type}


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Metadata:
    confidence: Confidence = "HIGH"
    sources: tuple[Citation, ...] = ()
    actions: tuple[str, ...] = ()
    grounding_chunks: tuple[GroundingChunk, ...] | None = None
    attachment: Attachment | None = None

    @staticmethod
    def from_dict(data: Any) -> Metadata:
        """
        Build from the JSON block a model appends to its answer.

        Raises ValueError if the block is not an object. Unknown confidence
        values become MEDIUM; non-object sources are skipped.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"metadata must be an object, got {type(data).__name__}")

        confidence = str(data.get("confidence", "MEDIUM")).upper()
        if confidence not in CONFIDENCE_VALUES:
            confidence = "MEDIUM"

        raw_sources = data.get("sources") or []
        raw_actions = data.get("actions") or []
        if not isinstance(raw_sources, list) or not isinstance(raw_actions, list):
            raise ValueError("metadata sources/actions must be lists")

        return Metadata(
            confidence=confidence,  # type: ignore[arg-type]
            sources=tuple(Citation.from_dict(s) for s in raw_sources if isinstance(s, Mapping)),
            actions=tuple(str(a) for a in raw_actions),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "confidence": self.confidence,
            "sources": [s.to_dict() for s in self.sources],
            "actions": list(self.actions),
        }
        if self.grounding_chunks is not None:
            out["groundingChunks"] = [c.to_dict() for c in self.grounding_chunks]
        if self.attachment is not None:
            out["attachment"] = self.attachment.to_dict()
        return out


# ------------------------------------------------------------------
# Messages / requests
# ------------------------------------------------------------------

@dataclass
class Message:
    """One chat history entry. Only feedback changes after creation."""
    id: str
    role: Role
    text: str
    timestamp_ms: int
    metadata: Metadata | None = None
    feedback: Feedback | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "text": self.text,
            "timestamp": self.timestamp_ms,
        }
        if self.metadata is not None:
            out["metadata"] = self.metadata.to_dict()
        if self.feedback is not None:
            out["feedback"] = self.feedback
        return out


@dataclass(frozen=True)
class ChatRequest:
    """
    One user turn in a given mode.

    context: free-form details (e.g. the FIR form) for document drafting.
    location: user position, used by STATION_FINDER.
    """
    mode: AppMode
    text: str = ""
    language: str = DEFAULT_LANGUAGE_CODE
    context: str | None = None
    location: Location | None = None
    attachment: Attachment | None = None

    @property
    def is_empty(self) -> bool:
        return (
            not self.text.strip()
            and not self.context
            and self.location is None
            and self.attachment is None
        )


@dataclass(frozen=True)
class ChatReply:
    text: str
    metadata: Metadata | None = None


@dataclass(frozen=True)
class ChatExchange:
    """The user message and model reply recorded by one ChatService.send()."""
    user: Message
    reply: Message
