"""
BiDi Events - WebDriver BiDi event payloads emitted by Location Bridge

Only the two events the driver publishes are modelled:
- log.entryAdded (https://w3c.github.io/webdriver-bidi/#event-log-entryAdded)
- appium:contextUpdate (https://github.com/appium/appium/issues/20741)
"""

import logging
import time
from collections import deque
from typing import Any, Deque, Dict, List, Literal, Optional

from pydantic import BaseModel

BiDiLogLevel = Literal["debug", "info", "warn", "error"]

LOG_ENTRY_ADDED_EVENT = "log.entryAdded"
CONTEXT_UPDATED_EVENT = "appium:contextUpdate"
NATIVE_CONTEXT = "NATIVE_APP"


class BiDiEvent(BaseModel):
    method: str
    params: Any


class LogEntrySource(BaseModel):
    realm: str = ""


class LogEntryAddedEventParams(BaseModel):
    type: str
    level: BiDiLogLevel
    source: LogEntrySource
    text: str
    timestamp: int


class LogEntryAddedEvent(BiDiEvent):
    method: Literal["log.entryAdded"] = LOG_ENTRY_ADDED_EVENT
    params: LogEntryAddedEventParams
    context: str


class ContextUpdatedParams(BaseModel):
    name: str
    type: Literal["NATIVE", "WEB"]


class ContextUpdatedEvent(BiDiEvent):
    method: Literal["appium:contextUpdate"] = CONTEXT_UPDATED_EVENT
    params: ContextUpdatedParams


def bidi_level_for(levelno: int) -> BiDiLogLevel:
    """Map a logging level number onto the four BiDi levels"""
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    if levelno >= logging.INFO:
        return "info"
    return "debug"


def make_log_entry_added_event(
    context: str,
    text: str,
    level: BiDiLogLevel = "info",
    timestamp: Optional[int] = None,
    entry_type: str = "server",
) -> LogEntryAddedEvent:
    return LogEntryAddedEvent(
        context=context,
        params=LogEntryAddedEventParams(
            type=entry_type,
            level=level,
            source=LogEntrySource(realm=""),
            text=text,
            timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        ),
    )


def make_context_updated_event(name: str) -> ContextUpdatedEvent:
    return ContextUpdatedEvent(
        params=ContextUpdatedParams(
            name=name,
            type="NATIVE" if name == NATIVE_CONTEXT else "WEB",
        )
    )


class BiDiLogHandler(logging.Handler):
    """
    Logging handler that turns log records into log.entryAdded events.
    Maintains a circular buffer of recent events for polling clients.
    """

    def __init__(self, max_buffer: int = 200, context: str = NATIVE_CONTEXT):
        super().__init__()
        self.context = context
        self.events: Deque[Dict[str, Any]] = deque(maxlen=max_buffer)

    def emit(self, record):
        """Convert a log record and buffer it"""
        try:
            event = make_log_entry_added_event(
                context=self.context,
                text=self.format(record),
                level=bidi_level_for(record.levelno),
                timestamp=int(record.created * 1000),
            )
            self.publish(event)
        except Exception:
            self.handleError(record)

    def publish(self, event: BiDiEvent) -> None:
        """Buffer an already built event"""
        self.events.append(event.model_dump())

    def get_events(self, method: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        events = [e for e in list(self.events) if method is None or e["method"] == method]
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def clear(self) -> None:
        self.events.clear()
