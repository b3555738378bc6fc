"""Default business handlers for vendor events.

Order, download and AI-generation events upsert the matching record keyed by
the vendor id, so a redelivered event leaves the same state behind. Users are
notified when the event metadata carries an ``email``; system events go to the
admin address.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nehtw_webhooks.models import AIGenerationJob, VendorDownload, VendorOrder
from nehtw_webhooks.schemas import WebhookEvent
from nehtw_webhooks.services.notifications import EmailNotifier
from nehtw_webhooks.services.processor import WebhookProcessor

logger = logging.getLogger(__name__)


class DefaultHandlers:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], notifier: EmailNotifier):
        self.session_factory = session_factory
        self.notifier = notifier

    def routes(self) -> dict:
        return {
            "order.completed": self.order_completed,
            "order.failed": self.order_failed,
            "order.processing": self.order_processing,
            "download.ready": self.download_ready,
            "download.expired": self.download_expired,
            "ai.completed": self.ai_completed,
            "ai.failed": self.ai_failed,
            "user.credits_updated": self.user_credits_updated,
            "user.subscription_updated": self.user_subscription_updated,
            "system.maintenance": self.system_maintenance,
            "system.error": self.system_error,
        }

    # ── Orders ───────────────────────────────────────────
    async def order_completed(self, event: WebhookEvent) -> None:
        if await self._update_order(event, "completed"):
            await self._notify_user(event, "Your order is complete", "Your order has been completed and is ready to download.")

    async def order_failed(self, event: WebhookEvent) -> None:
        if await self._update_order(event, "failed", detail=event.extra_info):
            await self._notify_user(event, "Your order failed", "We could not complete your order. Any charge will be refunded.")

    async def order_processing(self, event: WebhookEvent) -> None:
        await self._update_order(event, "processing")

    async def _update_order(self, event: WebhookEvent, status: str, detail: Optional[str] = None) -> bool:
        order_id = event.resource_id("order_id", "orderId")
        if not order_id:
            logger.warning(f"{event.event_name} without order id, nothing to update")
            return False
        await self._upsert(
            VendorOrder,
            "vendor_order_id",
            order_id,
            status=status,
            vendor_status=event.event_status,
            user_id=event.resource_id("user_id", "userId"),
            detail=detail,
        )
        logger.info(f"Order {order_id} -> {status}")
        return True

    # ── Downloads ────────────────────────────────────────
    async def download_ready(self, event: WebhookEvent) -> None:
        download_id = event.resource_id("download_id", "downloadId")
        if not download_id:
            logger.warning(f"{event.event_name} without download id, nothing to update")
            return
        await self._upsert(
            VendorDownload,
            "vendor_download_id",
            download_id,
            status="ready",
            vendor_order_id=event.resource_id("order_id", "orderId"),
            user_id=event.resource_id("user_id", "userId"),
            download_url=event.metadata_value("downloadUrl"),
            file_name=event.metadata_value("fileName"),
            expires_at=event.metadata_value("expiresAt"),
        )
        logger.info(f"Download {download_id} ready")
        await self._notify_user(event, "Your download is ready", "Your file is ready to download.")

    async def download_expired(self, event: WebhookEvent) -> None:
        download_id = event.resource_id("download_id", "downloadId")
        if not download_id:
            logger.warning(f"{event.event_name} without download id, nothing to update")
            return
        await self._upsert(VendorDownload, "vendor_download_id", download_id, status="expired")
        logger.info(f"Download {download_id} expired")
        await self._notify_user(event, "Your download link expired", "Your download link has expired.")

    # ── AI generation ────────────────────────────────────
    async def ai_completed(self, event: WebhookEvent) -> None:
        job_id = event.resource_id("job_id", "jobId")
        if not job_id:
            logger.warning(f"{event.event_name} without job id, nothing to update")
            return
        await self._upsert(
            AIGenerationJob,
            "vendor_job_id",
            job_id,
            status="completed",
            user_id=event.resource_id("user_id", "userId"),
            image_url=event.metadata_value("imageUrl"),
            thumbnail_url=event.metadata_value("thumbnailUrl"),
        )
        logger.info(f"AI job {job_id} completed")
        await self._notify_user(event, "Your image is ready", "Your AI generated image is ready.")

    async def ai_failed(self, event: WebhookEvent) -> None:
        job_id = event.resource_id("job_id", "jobId")
        if not job_id:
            logger.warning(f"{event.event_name} without job id, nothing to update")
            return
        await self._upsert(
            AIGenerationJob,
            "vendor_job_id",
            job_id,
            status="failed",
            user_id=event.resource_id("user_id", "userId"),
            error=event.extra_info,
        )
        logger.info(f"AI job {job_id} failed")
        await self._notify_user(event, "Image generation failed", "We could not generate your image.")

    # ── Users ────────────────────────────────────────────
    async def user_credits_updated(self, event: WebhookEvent) -> None:
        credits = event.metadata_value("credits")
        message = f"Your credit balance is now {credits}." if credits is not None else "Your credit balance changed."
        await self._notify_user(event, "Credits updated", message)

    async def user_subscription_updated(self, event: WebhookEvent) -> None:
        plan = event.metadata_value("plan")
        message = f"Your subscription is now on the {plan} plan." if plan else "Your subscription changed."
        await self._notify_user(event, "Subscription updated", message)

    # ── System ───────────────────────────────────────────
    async def system_maintenance(self, event: WebhookEvent) -> None:
        message = event.extra_info or event.metadata_value("message") or "Vendor maintenance scheduled."
        await self.notifier.notify_admins("Vendor maintenance", message)

    async def system_error(self, event: WebhookEvent) -> None:
        message = event.extra_info or event.metadata_value("message") or "Vendor reported an error."
        logger.error(f"Vendor system error: {message}")
        await self.notifier.notify_admins("Vendor system error", message)

    # ── Helpers ──────────────────────────────────────────
    async def _upsert(self, model, key_column: str, key: str, **values):
        async with self.session_factory() as db:
            result = await db.execute(select(model).where(getattr(model, key_column) == key))
            record = result.scalar_one_or_none()
            if record is None:
                record = model(**{key_column: key})
                db.add(record)
            for name, value in values.items():
                if value is not None:
                    setattr(record, name, value)
            await db.commit()
            return record

    async def _notify_user(self, event: WebhookEvent, subject: str, message: str) -> None:
        email = event.metadata_value("email")
        if email:
            await self.notifier.notify(str(email), subject, message)


def register_default_handlers(
    processor: WebhookProcessor,
    session_factory: async_sessionmaker[AsyncSession],
    notifier: EmailNotifier,
) -> DefaultHandlers:
    handlers = DefaultHandlers(session_factory, notifier)
    for event_name, handler in handlers.routes().items():
        processor.register_handler(event_name, handler)
    return handlers
