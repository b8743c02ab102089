"""Tests for the in-memory log buffer and its structlog processor."""

from __future__ import annotations

import json

from shopbot.logging import configure_logging, logger
from shopbot.services.log_buffer import LogBuffer, LogBufferProcessor


def test_oldest_entries_are_evicted_past_retention():
    buffer = LogBuffer(max_entries=3)

    for index in range(5):
        buffer.append("info", f"event-{index}")

    assert len(buffer) == 3
    assert [entry.message for entry in buffer.list()] == ["event-4", "event-3", "event-2"]


def test_level_filter_admits_more_severe_levels():
    buffer = LogBuffer()
    for level in ("debug", "info", "warn", "error"):
        buffer.append(level, level)

    assert [e.message for e in buffer.list(level="error")] == ["error"]
    assert [e.message for e in buffer.list(level="warn")] == ["error", "warn"]
    assert [e.message for e in buffer.list(level="debug")] == ["error", "warn", "info", "debug"]
    assert [e.message for e in buffer.list(limit=2)] == ["error", "warn"]


def test_metadata_dropped_when_not_detailed():
    buffer = LogBuffer(detailed=False)

    entry = buffer.append("info", "order_created", user_id="42", metadata={"order_id": 7})

    assert entry.user_id == "42"
    assert entry.metadata is None


def test_resize_keeps_newest_entries():
    buffer = LogBuffer(max_entries=10)
    for index in range(6):
        buffer.append("info", str(index))

    buffer.resize(2)

    assert buffer.max_entries == 2
    assert [entry.message for entry in buffer.list()] == ["5", "4"]


def test_processor_maps_structlog_levels_and_metadata():
    buffer = LogBuffer()
    processor = LogBufferProcessor(buffer)
    event = {
        "event": "rate_limit_exceeded",
        "level": "warning",
        "user_id": 42,
        "timestamp": "2026-01-01T00:00:00Z",
        "detail": ("a", object()),
    }

    returned = processor(None, "warning", event)

    assert returned is event
    entry = buffer.list()[0]
    assert entry.level == "warn"
    assert entry.user_id == "42"
    assert set(entry.metadata) == {"detail"}
    assert entry.metadata["detail"][0] == "a"
    assert isinstance(entry.metadata["detail"][1], str)


def test_configured_logger_emits_json_and_fills_buffer(capsys):
    buffer = LogBuffer()
    configure_logging("info", buffer=buffer)
    try:
        logger.debug("suppressed_event")
        logger.info("order_created", user_id="42", order_id=7)
    finally:
        configure_logging("info")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == "order_created"
    assert payload["level"] == "info"
    assert payload["order_id"] == 7
    assert [entry.message for entry in buffer.list()] == ["order_created"]
    assert buffer.list()[0].metadata == {"order_id": 7}
