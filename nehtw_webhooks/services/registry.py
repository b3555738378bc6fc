"""Event-name to handler registry.

Handlers are registered at startup, before traffic arrives. Registering the
same event name again replaces the previous handler.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional, Union

from nehtw_webhooks.schemas import WebhookEvent

logger = logging.getLogger(__name__)

# Async handlers are awaited; plain callables run in a worker thread.
# Returning False or raising reports a failed delivery.
WebhookHandler = Callable[[WebhookEvent], Union[Awaitable[Any], Any]]


class HandlerRegistry:
    def __init__(self):
        self._handlers: dict[str, WebhookHandler] = {}

    def register(self, event_name: str, handler: WebhookHandler) -> None:
        if not callable(handler):
            raise TypeError(f"Handler for {event_name} must be callable")
        self._handlers[event_name] = handler
        logger.info(f"Registered webhook handler for event: {event_name}")

    def unregister(self, event_name: str) -> None:
        if self._handlers.pop(event_name, None) is not None:
            logger.info(f"Unregistered webhook handler for event: {event_name}")

    def lookup(self, event_name: str) -> Optional[WebhookHandler]:
        return self._handlers.get(event_name)

    @property
    def event_names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, event_name: str) -> bool:
        return event_name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
