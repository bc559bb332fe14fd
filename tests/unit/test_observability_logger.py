# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any, Iterator

import pytest

from observability import logger
from observability import metrics


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> Iterator[list[str]]:
    lines: list[str] = []
    logger.configure_logging()
    # Patch the explicit output sink used by logger
    monkeypatch.setattr(logger, "_print", lines.append)
    yield lines
    logger.configure_logging()


def test_log_event_emits_valid_jsonl(captured: list[str]) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload is serialized as-is
    - output sink is patchable
    """
    payload: dict[str, Any] = {
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    # Exactly one line emitted
    assert len(captured) == 1

    # Payload must be preserved exactly
    assert json.loads(captured[0]) == payload


def test_unserializable_event_falls_back(captured: list[str]) -> None:
    logger.log_event({"ts_ms": 1, "event_type": "TEST", "value": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert decoded["ts_ms"] == 1


def test_events_below_min_level_are_dropped(captured: list[str]) -> None:
    logger.configure_logging(level="warning")

    logger.log_event({"event_type": "INFO_EVENT"})
    logger.log_event({"event_type": "DEBUG_EVENT", "level": "DEBUG"})
    logger.log_event({"event_type": "WARN_EVENT", "level": "WARNING"})

    assert [json.loads(line)["event_type"] for line in captured] == ["WARN_EVENT"]


def test_plain_rendering(captured: list[str]) -> None:
    logger.configure_logging(json_lines=False)

    logger.log_event({"event_type": "LIVE_SESSION_ACTIVE", "session_id": "live_1"})

    assert captured == ["LIVE_SESSION_ACTIVE session_id=live_1"]


# ---------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------

def test_timed_emits_one_metric(captured: list[str]) -> None:
    with metrics.timed("chat_completion_latency", details={"mode": "CHAT"}):
        pass

    assert len(captured) == 1
    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "METRIC_TIMER"
    assert decoded["metric"] == "chat_completion_latency"
    assert decoded["value_ms"] >= 0
    assert decoded["details"] == {"mode": "CHAT"}


def test_timed_emits_even_when_block_raises(captured: list[str]) -> None:
    with pytest.raises(RuntimeError):
        with metrics.timed("failing"):
            raise RuntimeError("boom")

    assert json.loads(captured[0])["metric"] == "failing"


def test_stop_and_discard_unknown_or_dropped_timers(captured: list[str]) -> None:
    timer_id = metrics.start_timer("live_session_open_latency")
    metrics.discard_timer(timer_id)

    assert metrics.stop_timer(timer_id) is None
    assert metrics.stop_timer("timer_missing") is None
    assert captured == []
