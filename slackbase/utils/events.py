from collections import defaultdict
from collections.abc import Callable
import logging
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class EventEmitter:
    """Registry of named event handlers, called in registration order."""

    def __init__(self) -> None:
        self._handlers: defaultdict[str, list[Handler]] = defaultdict(list)

    def on(self, event: str, handler: Handler) -> Handler:
        self._handlers[event].append(handler)
        return handler

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, *args: Any) -> bool:
        handlers = list(self._handlers.get(event, []))
        for handler in handlers:
            handler(*args)
        logger.debug("event_emitted event=%s handlers=%s", event, len(handlers))
        return bool(handlers)
