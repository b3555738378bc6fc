"""In-memory retry queue for webhook events whose handler failed.

Events wait here until the periodic drain redelivers them. Each enqueue bumps
``retry_attempts``; an event already at ``retry_attempts_max`` is dropped with an
error log instead. The queue lives in process memory, so pending retries do not
survive a restart.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional

from nehtw_webhooks.schemas import DrainSummary, ProcessingResult, WebhookConfig, WebhookEvent

logger = logging.getLogger(__name__)

Deliver = Callable[[WebhookEvent], Awaitable[ProcessingResult]]


class RetryQueue:
    def __init__(self, config: WebhookConfig):
        self.config = config
        self._items: list[WebhookEvent] = []
        # Guards mutation of _items
        self._lock = asyncio.Lock()
        # Held for the whole drain pass (single-flight)
        self._drain_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self.dropped_total = 0

    @property
    def depth(self) -> int:
        return len(self._items)

    @property
    def drain_in_progress(self) -> bool:
        return self._drain_lock.locked()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def enqueue(self, event: WebhookEvent) -> bool:
        """Queue the event for another attempt. Returns False if it was dropped."""
        async with self._lock:
            if event.retry_attempts >= self.config.retry_attempts_max:
                self.dropped_total += 1
                logger.error(
                    f"Max retry attempts reached for event: {event.event_name} "
                    f"(request_id={event.request_id}, attempts={event.retry_attempts}), dropping"
                )
                return False
            event.retry_attempts += 1
            self._items.append(event)
            logger.info(
                f"Added event to retry queue: {event.event_name} "
                f"(attempt {event.retry_attempts}/{self.config.retry_attempts_max})"
            )
            return True

    async def drain(self, deliver: Deliver) -> Optional[DrainSummary]:
        """Redeliver everything queued right now, one event at a time.

        Returns None without doing anything if another pass is running.
        Failed events are re-queued by ``deliver`` into the fresh queue, so they
        wait for the next pass.
        """
        if self._drain_lock.locked():
            logger.debug("Retry queue drain already in progress, skipping")
            return None

        async with self._drain_lock:
            async with self._lock:
                batch, self._items = self._items, []

            summary = DrainSummary()
            if not batch:
                return summary

            logger.info(f"Processing retry queue with {len(batch)} events")
            index = 0
            try:
                for index, event in enumerate(batch):
                    if index and self.config.retry_delay:
                        await asyncio.sleep(self.config.retry_delay)
                    result = await deliver(event)
                    summary.attempted += 1
                    if result.success:
                        summary.succeeded += 1
                        logger.info(f"Successfully retried event: {event.event_name}")
                    elif result.retry_scheduled:
                        summary.requeued += 1
                    else:
                        summary.dropped += 1
                index = len(batch)
            finally:
                # Interrupted pass: put undelivered events back at the front.
                # deliver may already have re-queued the event it was cancelled in.
                if index < len(batch):
                    queued = {id(item) for item in self._items}
                    pending = [item for item in batch[index:] if id(item) not in queued]
                    self._items[:0] = pending
                    logger.warning(f"Retry queue drain interrupted, restored {len(pending)} events")

            return summary

    def start(self, deliver: Deliver) -> None:
        """Start the periodic drain on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(deliver), name="webhook-retry-drain")
        logger.info(f"Retry processor started (interval={self.config.drain_interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Retry processor stopped")

    async def _run(self, deliver: Deliver) -> None:
        while True:
            await asyncio.sleep(self.config.drain_interval)
            try:
                await self.drain(deliver)
            except Exception:
                logger.exception("Retry queue drain failed")
