"""Event bus shared by the analysis pipeline and its hosts.

The pipeline never prints.  It publishes three kinds of events and lets
whoever drives it (the CLI, an editor plug-in, a test) decide what to do
with them:

* ``progress``: ``current``, ``total``, ``message``, ``path``
* ``warning``: ``message``, ``path`` (``None`` for batch-wide warnings)
* ``completed``: ``message``, ``processed``, ``skipped``, ``frozen``
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

PROGRESS = "progress"
WARNING = "warning"
COMPLETED = "completed"

Listener = Callable[..., None]


class EventBus:
    """Publish/subscribe hub keyed by event name.

    Subscriptions may change while a worker thread is emitting; each
    ``emit`` works on a snapshot of the listeners taken under a lock.
    A listener that raises is logged and does not stop the others.
    """

    def __init__(self) -> None:
        """Create a bus with no listeners."""
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event: str, listener: Listener) -> None:
        """Call *listener* with the event's keyword payload whenever *event* fires."""
        with self._lock:
            self._listeners[event].append(listener)

    def unsubscribe(self, event: str, listener: Listener) -> None:
        """Stop calling *listener* for *event*; unknown listeners are logged and ignored."""
        with self._lock:
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)
                return
        logger.warning("Listener %r is not subscribed to %r", listener, event)

    def subscribers(self, event: str) -> int:
        """Return how many listeners are attached to *event*."""
        with self._lock:
            return len(self._listeners.get(event, []))

    def emit(self, event: str, **payload: Any) -> None:
        """Deliver *payload* to every listener of *event*, in subscription order.

        Args:
            event: Event name, usually one of ``PROGRESS``, ``WARNING`` or ``COMPLETED``.
            **payload: Keyword data handed to each listener.
        """
        with self._lock:
            listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            try:
                listener(**payload)
            except Exception:
                logger.exception("Listener %r failed while handling %r", listener, event)


def report_progress(event_bus: EventBus | None, current: int, total: int, path: str) -> None:
    """Publish one ``progress`` step for the texture at *path*."""
    if event_bus is not None:
        event_bus.emit(PROGRESS, current=current, total=total, message=f"Analysed {path}", path=path)


def report_warning(event_bus: EventBus | None, message: str, *, path: str | None = None) -> None:
    """Log a recoverable condition and mirror it on the event bus.

    Args:
        event_bus: Bus to notify, or ``None`` to only log.
        message: Human-readable description of the correction.
        path: Texture path the warning relates to, if any.
    """
    if path:
        logger.warning("%s: %s", path, message)
    else:
        logger.warning("%s", message)
    if event_bus is not None:
        event_bus.emit(WARNING, message=message, path=path)
