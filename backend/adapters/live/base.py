"""
Live session adapter contract.

Purpose:
- Define the interface for a bidirectional audio session with a hosted model.
- Keep lifecycle decisions (when to open, when to tear down, what to do on
  failure) OUT of the adapter.

Rules:
- This file contains NO logic.
- No retries, no reconnects.
- Inbound traffic is delivered as wire-shaped records (see
  protocol.live_messages), never as vendor SDK objects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable


class LiveSessionError(RuntimeError):
    """Remote session failed (connect refused, stream error, unexpected close)."""


@dataclass(frozen=True)
class LiveCallbacks:
    """
    Callback set wired into a live session.

    All callbacks are invoked on the event loop.

    on_open:    session established; outbound media may flow
    on_message: one inbound record (Mapping, wire shape)
    on_error:   stream failed; no further callbacks follow except on_close
    on_close:   stream ended (remote or local)
    """
    on_open: Callable[[], None]
    on_message: Callable[[dict[str, Any]], None]
    on_error: Callable[[BaseException], None]
    on_close: Callable[[str | None], None]


class LiveSessionHandle(ABC):
    """
    An open live session. At most one is alive per controller.
    """

    @abstractmethod
    async def send_media(self, record: dict[str, Any]) -> None:
        """
        Send one outbound media record.

        Contract:
        - No acknowledgement.
        - Must NOT retry internally.
        - May raise; callers treat failures as frame loss.
        """
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """
        Close the session.

        Contract:
        - Idempotent.
        - Must NOT raise on an already-closed session.
        """
        raise NotImplementedError


class LiveConnector(ABC):
    """
    Opens live sessions.

    The connector is a *dumb pipe* factory. The lifecycle controller owns:
    - When to connect
    - Teardown on error/close
    - What to do with inbound records
    """

    @abstractmethod
    async def connect(
        self,
        *,
        model: str,
        system_instruction: str,
        callbacks: LiveCallbacks,
    ) -> LiveSessionHandle:
        """
        Open a session configured for audio-only responses.

        Contract:
        - Calls callbacks.on_open once the session is usable, before or
          around the time the handle is returned.
        - Raises LiveSessionError (or the vendor error) if the session
          cannot be opened; no callbacks fire in that case.
        """
        raise NotImplementedError
