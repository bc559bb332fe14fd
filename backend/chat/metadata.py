"""
Response metadata extraction.

The model is instructed to append a JSON block between METADATA_START_MARKER
and METADATA_END_MARKER. This module splits it off the answer text.
"""

from __future__ import annotations

import json
import re
import time

from chat.types import Metadata
from constants import METADATA_END_MARKER, METADATA_START_MARKER
from observability.logger import log_event


_METADATA_RE = re.compile(
    re.escape(METADATA_START_MARKER) + r"([\s\S]*?)" + re.escape(METADATA_END_MARKER)
)


def parse_response_metadata(text: str) -> tuple[str, Metadata | None]:
    """
    Split a model answer into (display text, metadata).

    - No block (or an empty one): text unchanged, no metadata.
    - Valid block: first block removed, remaining text stripped.
    - Malformed block: logged; raw text kept, no metadata.
    """
    match = _METADATA_RE.search(text)
    if match is None or not match.group(1):
        return text, None

    try:
        metadata = Metadata.from_dict(json.loads(match.group(1)))
    except ValueError as e:
        log_event({
            "ts_ms": time.time_ns() // 1_000_000,
            "level": "WARNING",
            "event_type": "CHAT_METADATA_PARSE_FAILED",
            "error": str(e),
        })
        return text, None

    cleaned = _METADATA_RE.sub("", text, count=1).strip()
    return cleaned, metadata
