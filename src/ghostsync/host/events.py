"""Synchronous build-event emitter."""

from __future__ import annotations

import logging
from collections import defaultdict

from ghostsync.host.base import EventHandler

logger = logging.getLogger(__name__)


class EventEmitter:
    """Minimal on/off/emit emitter for build lifecycle events."""

    def __init__(self) -> None:
        self._handlers: defaultdict[str, list[EventHandler]] = defaultdict(list)

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return

    def emit(self, event: str, *args: object) -> int:
        """Call every handler subscribed to `event`; return how many ran."""

        # Handlers may unsubscribe themselves while being called.
        handlers = list(self._handlers.get(event, ()))
        for handler in handlers:
            handler(*args)
        logger.debug("Emitted %s to %s handler(s)", event, len(handlers))
        return len(handlers)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))
