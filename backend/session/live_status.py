"""
Live voice session status.

Transitions (owned by session.controller.LiveSessionController):

    IDLE -> STARTING        start()
    STARTING -> ACTIVE      remote session opened
    STARTING -> IDLE        acquisition failure, connect failure, stop()
    ACTIVE -> IDLE          stop(), remote error, remote close
"""
from enum import Enum


class LiveStatus(str, Enum):
    """
    Lifecycle status of the live voice pipeline.
    """
    IDLE = "IDLE"            # Nothing acquired
    STARTING = "STARTING"    # Audio acquired, session opening
    ACTIVE = "ACTIVE"        # Session open, audio flowing both ways
