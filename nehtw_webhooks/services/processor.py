"""WebhookProcessor — the webhook subsystem as one explicitly constructed object.

Wires the handler registry to the retry queue through the dispatcher for a single
configuration. The FastAPI app builds one instance and hands it to routes
through a dependency; tests build their own.
"""

import logging
from collections.abc import Mapping
from typing import Optional

from nehtw_webhooks.schemas import (
    DrainSummary,
    ProcessingResult,
    ValidationResult,
    WebhookConfig,
    WebhookEvent,
    WebhookStats,
)
from nehtw_webhooks.services.dispatcher import ResultListener, WebhookDispatcher
from nehtw_webhooks.services.registry import HandlerRegistry, WebhookHandler
from nehtw_webhooks.services.retry_queue import RetryQueue
from nehtw_webhooks.services.validation import validate_event
from nehtw_webhooks.services.verification import verify_origin, verify_signature

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-neh-signature"


class WebhookProcessor:
    def __init__(self, config: Optional[WebhookConfig] = None):
        self.config = config or WebhookConfig()
        self.registry = HandlerRegistry()
        self.queue = RetryQueue(self.config)
        self.dispatcher = WebhookDispatcher(self.config, self.registry, self.queue)

        if not self.config.secret:
            logger.warning("Webhook secret not configured, running in insecure mode")
        if not self.config.allowed_origins:
            logger.warning("No webhook origin allow-list configured, accepting any origin")

    # ── Handlers ─────────────────────────────────────────
    def register_handler(self, event_name: str, handler: WebhookHandler) -> None:
        self.registry.register(event_name, handler)

    def unregister_handler(self, event_name: str) -> None:
        self.registry.unregister(event_name)

    def add_result_listener(self, listener: ResultListener) -> None:
        """Call ``listener(event, result)`` after every delivery attempt."""
        self.dispatcher.listeners.append(listener)

    # ── Checks ───────────────────────────────────────────
    def verify_signature(self, headers: Mapping[str, str], body: bytes) -> bool:
        return verify_signature(body, headers.get(SIGNATURE_HEADER), self.config.secret)

    def verify_origin(self, origin: str) -> bool:
        return verify_origin(origin, self.config.allowed_origins)

    def validate_event(self, event: WebhookEvent) -> ValidationResult:
        return validate_event(event)

    # ── Processing ───────────────────────────────────────
    async def process_event(self, event: WebhookEvent) -> ProcessingResult:
        return await self.dispatcher.process(event)

    async def drain_retry_queue(self) -> Optional[DrainSummary]:
        return await self.queue.drain(self.dispatcher.deliver)

    def start_retry_processor(self) -> None:
        self.queue.start(self.dispatcher.deliver)

    async def stop_retry_processor(self) -> None:
        await self.queue.stop()

    def stats(self) -> WebhookStats:
        return WebhookStats(
            registered_handler_count=len(self.registry),
            registered_event_names=self.registry.event_names,
            queue_depth=self.queue.depth,
            drain_in_progress=self.queue.drain_in_progress,
            retry_processor_running=self.queue.running,
            processed_total=self.dispatcher.processed_total,
            failed_total=self.dispatcher.failed_total,
            dropped_total=self.queue.dropped_total,
        )
