"""
Typed event notification for keyspace handles.
"""

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from keyspace.models.hooks import HookHandle, HookRegistry

logger = logging.getLogger(__name__)


class Event(str, Enum):
    """Events a handle publishes."""

    OPEN = "open"
    CLOSE = "close"
    PUT = "put"
    DEL = "del"
    BATCH = "batch"


class EventBus:
    """
    Per-handle publish/subscribe for lifecycle and write events.

    Listener failures are logged and never reach the code that emitted
    the event.
    """

    def __init__(self) -> None:
        self._listeners: dict[Event, HookRegistry] = {event: HookRegistry() for event in Event}

    def on(self, event: Event | str, listener: Callable[[Any], Any]) -> HookHandle:
        """
        Subscribe to an event.

        Returns:
            Handle that unsubscribes this listener.
        """
        return self._listeners[Event(event)].add(listener)

    def emit(self, event: Event, payload: Any = None) -> None:
        for listener in self._listeners[event]:
            try:
                listener(payload)
            except Exception:
                logger.exception(f"Listener for '{event.value}' event failed")

    def listener_count(self, event: Event | str) -> int:
        return len(self._listeners[Event(event)])
