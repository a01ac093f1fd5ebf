# media_converter/events.py
"""
Observer interface for human-readable run events.

The core publishes LogEvents here; sinks (console, file, UI) subscribe and
decide how to display them. Every event is also mirrored to Python logging.
"""

import logging
from typing import Callable

from media_converter.models import EventLevel, LogEvent

logger = logging.getLogger(__name__)

EventListener = Callable[[LogEvent], None]


class EventLog:
    """Append-only event stream with subscribable listeners."""

    def __init__(self):
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def info(self, message: str) -> LogEvent:
        """Publish an informational event."""
        logger.debug(message)
        return self._publish(LogEvent(EventLevel.INFO, message))

    def error(self, caption: str, cause: BaseException | str) -> LogEvent:
        """Publish an error event as "<caption> (<cause>)"."""
        message = f"{caption} ({cause})"
        logger.warning(message)
        return self._publish(LogEvent(EventLevel.ERROR, message))

    def progress(self, percent: int) -> LogEvent:
        """Publish a conversion progress event."""
        return self._publish(LogEvent(EventLevel.INFO, f"Progress: {percent}%", percent=percent))

    def _publish(self, event: LogEvent) -> LogEvent:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Event listener {listener!r} failed")
        return event
