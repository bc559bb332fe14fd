"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware and logging
- Initialize shared resources (genai client, chat service, live controller)
- Register routes
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import partial
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from google import genai

from adapters.chat.base import ChatAdapter
from adapters.chat.gemini import GeminiChatAdapter
from adapters.live.base import LiveConnector
from adapters.live.gemini import GeminiLiveConnector
from chat.service import ChatService
from config import AppConfig
from observability.logger import configure_logging
from session.controller import InputFactory, LiveSessionController, OutputFactory

from server.routes import register_routes


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    controller: LiveSessionController = app.state.live_controller
    await controller.shutdown()


def create_app(
    config: AppConfig | None = None,
    *,
    chat_adapter: ChatAdapter | None = None,
    live_connector: LiveConnector | None = None,
    input_factory: InputFactory | None = None,
    output_factory: OutputFactory | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with fake adapters / audio devices
    - Environment-specific setup
    - ASGI server compatibility
    """
    if config is None:
        config = AppConfig.load_from_env()

    configure_logging(level=config.log_level, json_lines=config.enable_json_logs)

    app = FastAPI(title="Nyaya Legal Assistant API", lifespan=_lifespan)

    app.state.config = config

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten later
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One genai client per process, only when a real adapter is needed
    if chat_adapter is None or live_connector is None:
        client = build_genai_client(config)
        if chat_adapter is None:
            chat_adapter = GeminiChatAdapter(client=client)
        if live_connector is None:
            live_connector = GeminiLiveConnector(client=client)

    # PortAudio is loaded only when real devices are used
    if input_factory is None or output_factory is None:
        from audio import devices  # pylint: disable=import-outside-toplevel
        if input_factory is None:
            input_factory = partial(devices.InputContext, device=config.input_device)
        if output_factory is None:
            output_factory = partial(devices.OutputContext, device=config.output_device)

    app.state.chat_service = ChatService(adapter=chat_adapter, config=config)
    app.state.live_controller = LiveSessionController(
        connector=live_connector,
        model=config.live_model,
        input_factory=input_factory,
        output_factory=output_factory,
    )

    # Routes
    register_routes(app)

    return app


def build_genai_client(config: AppConfig) -> genai.Client:
    """Build the Gemini client shared by chat and live adapters."""
    if not config.gemini_api_key:
        raise RuntimeError("GEMINI_API_KEY environment variable not set")
    return genai.Client(api_key=config.gemini_api_key)
