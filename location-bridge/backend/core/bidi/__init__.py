"""
BiDi event models and the log handler that produces them
"""

from .events import (
    BiDiLogHandler,
    ContextUpdatedEvent,
    LogEntryAddedEvent,
    make_context_updated_event,
    make_log_entry_added_event,
)

__all__ = [
    "BiDiLogHandler",
    "ContextUpdatedEvent",
    "LogEntryAddedEvent",
    "make_context_updated_event",
    "make_log_entry_added_event",
]
