"""Webhook dispatcher — validates events, runs their handler under a timeout
and hands failures to the retry queue."""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from nehtw_webhooks.schemas import ProcessingResult, WebhookConfig, WebhookEvent
from nehtw_webhooks.services.registry import HandlerRegistry, WebhookHandler
from nehtw_webhooks.services.retry_queue import RetryQueue
from nehtw_webhooks.services.validation import validate_event

logger = logging.getLogger(__name__)

ResultListener = Callable[[WebhookEvent, ProcessingResult], Awaitable[Any]]

HANDLER_TIMEOUT = "Handler timeout"
HANDLER_REPORTED_FAILURE = "Handler reported failure"


def _is_async(handler: WebhookHandler) -> bool:
    return inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(handler, "__call__", None)
    )


class WebhookDispatcher:
    def __init__(self, config: WebhookConfig, registry: HandlerRegistry, queue: RetryQueue):
        self.config = config
        self.registry = registry
        self.queue = queue
        self.listeners: list[ResultListener] = []
        self.processed_total = 0
        self.failed_total = 0

    async def process(self, event: WebhookEvent) -> ProcessingResult:
        """Validate, then deliver. Invalid events are rejected and never retried."""
        validation = validate_event(event)
        if not validation.valid:
            self.failed_total += 1
            logger.warning(f"Rejected webhook event {event.event_name or '<unnamed>'}: {validation.reason}")
            return ProcessingResult(
                success=False,
                error=validation.reason,
                event_name=event.event_name,
                event_status=event.event_status,
                request_id=event.request_id,
                attempt=event.retry_attempts,
                retry_scheduled=False,
            )
        return await self.deliver(event)

    async def deliver(self, event: WebhookEvent) -> ProcessingResult:
        """Run the registered handler for an already validated event."""
        start = time.monotonic()
        attempt = event.retry_attempts
        error: Optional[str] = None

        handler = self.registry.lookup(event.event_name)
        if handler is None:
            logger.warning(f"No handler found for event: {event.event_name}, acknowledging")
        else:
            try:
                outcome = await self._invoke(handler, event)
                if outcome is False:
                    error = HANDLER_REPORTED_FAILURE
            except asyncio.TimeoutError:
                error = HANDLER_TIMEOUT
            except Exception as e:
                error = str(e) or type(e).__name__

        duration_ms = int((time.monotonic() - start) * 1000)
        result = ProcessingResult(
            success=error is None,
            error=error,
            event_name=event.event_name,
            event_status=event.event_status,
            request_id=event.request_id,
            attempt=attempt,
            duration_ms=duration_ms,
        )

        if error is None:
            self.processed_total += 1
            logger.info(f"Successfully processed webhook event: {event.event_name} in {duration_ms}ms")
        else:
            self.failed_total += 1
            logger.error(f"Error processing webhook event {event.event_name} (attempt {attempt}): {error}")
            result.retry_scheduled = await self.queue.enqueue(event)

        await self._notify(event, result)
        return result

    async def _invoke(self, handler: WebhookHandler, event: WebhookEvent) -> Any:
        # wait_for cancels the handler task when the deadline passes. Sync
        # handlers run in a thread, which keeps running after a timeout.
        if _is_async(handler):
            call = handler(event)
        else:
            call = asyncio.to_thread(handler, event)
        deadline = time.monotonic() + self.config.timeout
        outcome = await asyncio.wait_for(call, timeout=self.config.timeout)
        # Callables that return an awaitable without being declared async
        # share the same deadline.
        if inspect.isawaitable(outcome):
            remaining = max(deadline - time.monotonic(), 0)
            outcome = await asyncio.wait_for(outcome, timeout=remaining)
        return outcome

    async def _notify(self, event: WebhookEvent, result: ProcessingResult) -> None:
        for listener in self.listeners:
            try:
                await listener(event, result)
            except Exception:
                logger.exception(f"Result listener failed for event: {event.event_name}")
