"""Monitoring module for directory watches."""

from .cancellation import CancelReason, CancelSignal
from .prober import dir_is_empty
from .watcher import (
    EVENT_FILTERS,
    DirectoryEventHandler,
    Subscription,
    TaskOutcome,
    WatchTask,
    any_event,
    create_or_write,
    get_event_filter,
)
from .orchestrator import WatchOrchestrator

__all__ = [
    "CancelReason",
    "CancelSignal",
    "dir_is_empty",
    "EVENT_FILTERS",
    "DirectoryEventHandler",
    "Subscription",
    "TaskOutcome",
    "WatchTask",
    "any_event",
    "create_or_write",
    "get_event_filter",
    "WatchOrchestrator",
]
