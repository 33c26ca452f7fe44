from __future__ import annotations

import asyncio
import logging

import pytest

from core import legacy
from core.bidi.events import (
    BiDiLogHandler,
    bidi_level_for,
    make_context_updated_event,
    make_log_entry_added_event,
)
from utils.error_handler import UnsupportedOperationError


def test_log_entry_added_event_shape() -> None:
    event = make_log_entry_added_event("NATIVE_APP", "hello", level="warn", timestamp=1700)
    assert event.model_dump() == {
        "method": "log.entryAdded",
        "context": "NATIVE_APP",
        "params": {
            "type": "server",
            "level": "warn",
            "source": {"realm": ""},
            "text": "hello",
            "timestamp": 1700,
        },
    }


@pytest.mark.parametrize(
    "name, expected_type",
    [("NATIVE_APP", "NATIVE"), ("WEBVIEW_com.example", "WEB"), ("CHROMIUM", "WEB")],
)
def test_context_updated_event_type(name: str, expected_type: str) -> None:
    event = make_context_updated_event(name)
    assert event.method == "appium:contextUpdate"
    assert event.params.name == name
    assert event.params.type == expected_type


@pytest.mark.parametrize(
    "levelno, level",
    [
        (logging.DEBUG, "debug"),
        (logging.INFO, "info"),
        (logging.WARNING, "warn"),
        (logging.ERROR, "error"),
        (logging.CRITICAL, "error"),
    ],
)
def test_bidi_level_for(levelno: int, level: str) -> None:
    assert bidi_level_for(levelno) == level


def test_handler_buffers_log_records() -> None:
    handler = BiDiLogHandler(max_buffer=2)
    log = logging.getLogger("tests.bidi")
    log.setLevel(logging.DEBUG)
    log.addHandler(handler)
    try:
        log.info("first")
        log.warning("second")
        log.error("third")
    finally:
        log.removeHandler(handler)

    events = handler.get_events()
    assert [e["params"]["text"] for e in events] == ["second", "third"]
    assert [e["params"]["level"] for e in events] == ["warn", "error"]
    assert all(e["context"] == "NATIVE_APP" for e in events)


def test_handler_filters_by_method_and_limit() -> None:
    handler = BiDiLogHandler()
    handler.publish(make_context_updated_event("NATIVE_APP"))
    handler.publish(make_log_entry_added_event("NATIVE_APP", "a"))
    handler.publish(make_log_entry_added_event("NATIVE_APP", "b"))

    assert len(handler.get_events(method="appium:contextUpdate")) == 1
    assert [e["params"]["text"] for e in handler.get_events("log.entryAdded", limit=1)] == ["b"]
    assert handler.get_events(limit=0) == []

    handler.clear()
    assert handler.get_events() == []


@pytest.mark.parametrize("command", [legacy.launch_app, legacy.close_app, legacy.reset])
def test_legacy_commands_are_unsupported(command) -> None:
    with pytest.raises(UnsupportedOperationError, match="issues/15807"):
        asyncio.run(command())
