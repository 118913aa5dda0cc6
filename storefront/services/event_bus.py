from __future__ import annotations

import logging
from typing import Any, Callable

Handler = Callable[[dict[str, Any]], None]

logger = logging.getLogger(__name__)


class EventBus:
    """In-process publish/subscribe for domain events.

    Handlers run synchronously in subscription order. A failing handler is
    logged and skipped; it never undoes the committed change that raised the
    event, nor stops the handlers after it.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}

    def subscribe(self, event_name: str, handler: Handler) -> None:
        subscribers = self._subscribers.setdefault(event_name, [])
        if handler not in subscribers:
            subscribers.append(handler)

    def unsubscribe(self, event_name: str, handler: Handler) -> None:
        subscribers = self._subscribers.get(event_name)
        if subscribers and handler in subscribers:
            subscribers.remove(handler)

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        for handler in tuple(self._subscribers.get(event_name, ())):
            try:
                handler(payload)
            except Exception:
                logger.exception("Event handler %r failed event=%s", handler, event_name)


event_bus = EventBus()
