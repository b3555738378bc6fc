"""Persist every delivery attempt to the webhook_deliveries table."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nehtw_webhooks.models import WebhookDelivery
from nehtw_webhooks.schemas import ProcessingResult, WebhookEvent


def delivery_recorder(session_factory: async_sessionmaker[AsyncSession]):
    """Build a result listener that writes one WebhookDelivery per attempt."""

    async def record(event: WebhookEvent, result: ProcessingResult) -> None:
        async with session_factory() as db:
            db.add(WebhookDelivery(
                event_name=event.event_name,
                event_status=event.event_status,
                request_id=event.request_id,
                payload=event.model_dump_json(exclude={"retry_attempts"}),
                success=result.success,
                error=result.error or "",
                attempt=result.attempt,
                retry_scheduled=result.retry_scheduled,
                duration_ms=result.duration_ms,
            ))
            await db.commit()

    return record


async def list_deliveries(
    db: AsyncSession,
    event_name: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> list[WebhookDelivery]:
    stmt = select(WebhookDelivery)
    if event_name:
        stmt = stmt.where(WebhookDelivery.event_name == event_name)
    stmt = stmt.order_by(WebhookDelivery.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())
