"""
Route registration for the legal assistant API.

Responsibilities:
- Define HTTP endpoints for chat, history/feedback and the live voice session
- Translate request bodies into chat types
- Pull dependencies from app.state
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from chat.modes import DEFAULT_LANGUAGE_CODE, LANGUAGES, AppMode
from chat.service import ChatService, EmptyChatRequest
from chat.types import Attachment, ChatRequest, Location
from context.conversation import MessageNotFound
from session.controller import LiveSessionController


# ------------------------------------------------------------------
# Request bodies
# ------------------------------------------------------------------

class LocationBody(BaseModel):
    latitude: float
    longitude: float


class AttachmentBody(BaseModel):
    """Same keys as an attachment in the metadata returned by the API."""

    data: str
    mime_type: str = Field(alias="mimeType")


class ChatBody(BaseModel):
    mode: AppMode = AppMode.CHAT
    text: str = ""
    language: str = DEFAULT_LANGUAGE_CODE
    context: str | None = None
    location: LocationBody | None = None
    attachment: AttachmentBody | None = None

    def to_request(self) -> ChatRequest:
        return ChatRequest(
            mode=self.mode,
            text=self.text,
            language=self.language,
            context=self.context,
            location=(
                Location(self.location.latitude, self.location.longitude)
                if self.location is not None else None
            ),
            attachment=(
                Attachment(self.attachment.data, self.attachment.mime_type)
                if self.attachment is not None else None
            ),
        )


class FeedbackBody(BaseModel):
    feedback: str


# ------------------------------------------------------------------
# Routes
# ------------------------------------------------------------------

def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    # ---- chat ----

    @app.post("/chat")
    async def chat(body: ChatBody) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        service: ChatService = app.state.chat_service
        try:
            exchange = await service.send(body.to_request())
        except EmptyChatRequest as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return {
            "user": exchange.user.to_dict(),
            "reply": exchange.reply.to_dict(),
        }

    @app.get("/chat/{mode}/history")
    async def chat_history(mode: AppMode) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        service: ChatService = app.state.chat_service
        return {
            "mode": mode.value,
            "messages": [m.to_dict() for m in service.history.messages(mode)],
        }

    @app.delete("/chat/{mode}/history")
    async def clear_chat_history(mode: AppMode) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        service: ChatService = app.state.chat_service
        service.history.clear(mode)
        return {"mode": mode.value, "messages": []}

    @app.delete("/chat/history")
    async def clear_all_chat_history() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        service: ChatService = app.state.chat_service
        service.history.clear()
        return {"status": "cleared"}

    @app.get("/languages")
    async def languages() -> list[dict[str, str]]: # pyright: ignore[reportUnusedFunction]
        return [
            {"code": lang.code, "name": lang.name, "nativeName": lang.native_name}
            for lang in LANGUAGES
        ]

    @app.post("/chat/{mode}/messages/{message_id}/feedback")
    async def chat_feedback( # pyright: ignore[reportUnusedFunction]
        mode: AppMode,
        message_id: str,
        body: FeedbackBody,
    ) -> dict[str, Any]:
        service: ChatService = app.state.chat_service
        try:
            message = service.history.set_feedback(
                mode, message_id, body.feedback  # type: ignore[arg-type]
            )
        except MessageNotFound as e:
            raise HTTPException(status_code=404, detail=f"message not found: {e}") from e
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        return message.to_dict()

    # ---- live voice session ----

    @app.post("/live/toggle")
    async def live_toggle() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        controller: LiveSessionController = app.state.live_controller
        await controller.start()
        return controller.snapshot()

    @app.post("/live/stop")
    async def live_stop() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        controller: LiveSessionController = app.state.live_controller
        controller.stop()
        return controller.snapshot()

    @app.get("/live/status")
    async def live_status() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        controller: LiveSessionController = app.state.live_controller
        return controller.snapshot()
