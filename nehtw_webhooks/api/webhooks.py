"""Inbound vendor webhook endpoint and webhook introspection API."""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from nehtw_webhooks.api.deps import get_processor
from nehtw_webhooks.database import get_db
from nehtw_webhooks.errors import (
    EventValidationError,
    InvalidPayloadError,
    MissingHeadersError,
    OriginError,
    SignatureError,
)
from nehtw_webhooks.schemas import (
    VALID_EVENTS,
    DeliveryOut,
    WebhookAck,
    WebhookEvent,
    WebhookStats,
    WebhookVerification,
    utc_iso,
)
from nehtw_webhooks.services.delivery_log import list_deliveries
from nehtw_webhooks.services.processor import WebhookProcessor
from nehtw_webhooks.services.verification import client_origin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

# ── Vendor headers ───────────────────────────────────────
EVENT_NAME_HEADER = "x-neh-event_name"
STATUS_HEADER = "x-neh-status"

# header -> WebhookEvent field, all optional
OPTIONAL_HEADERS = {
    "x-neh-extra": "extra_info",
    "x-neh-request_id": "request_id",
    "x-neh-user_id": "user_id",
    "x-neh-order_id": "order_id",
    "x-neh-task_id": "task_id",
    "x-neh-job_id": "job_id",
    "x-neh-download_id": "download_id",
}


def _parse_body(body: bytes) -> Optional[dict[str, Any]]:
    """Decode the JSON body into event metadata. An empty body carries none."""
    if not body.strip():
        return None
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidPayloadError("Request body is not valid JSON")
    if isinstance(payload, dict):
        return payload
    return {"payload": payload}


# ── Endpoints ────────────────────────────────────────────
@router.post("/nehtw", response_model=WebhookAck)
async def receive_webhook(request: Request, processor: WebhookProcessor = Depends(get_processor)):
    """Authenticate, validate and process one vendor notification.

    Handler failures do not change the response: the event is already owned by
    the retry queue at that point.
    """
    headers = request.headers
    event_name = headers.get(EVENT_NAME_HEADER)
    event_status = headers.get(STATUS_HEADER)
    if not event_name or not event_status:
        raise MissingHeadersError(f"Missing required headers: {EVENT_NAME_HEADER}, {STATUS_HEADER}")

    body = await request.body()

    if not processor.verify_signature(headers, body):
        raise SignatureError("Invalid webhook signature")

    origin = client_origin(request)
    if not processor.verify_origin(origin):
        raise OriginError(f"Unauthorized origin: {origin}")

    event = WebhookEvent(
        event_name=event_name,
        event_status=event_status,
        timestamp=headers.get("x-neh-timestamp") or utc_iso(),
        metadata=_parse_body(body),
        **{field: headers[name] for name, field in OPTIONAL_HEADERS.items() if headers.get(name)},
    )
    logger.info(
        f"Received nehtw webhook: event={event.event_name} status={event.event_status} "
        f"request_id={event.request_id} origin={origin}"
    )

    validation = processor.validate_event(event)
    if not validation.valid:
        raise EventValidationError(validation.reason)

    result = await processor.process_event(event)
    if not result.success:
        logger.warning(
            f"Webhook {event.event_name} acknowledged after handler failure: {result.error} "
            f"(retry_scheduled={result.retry_scheduled})"
        )

    return WebhookAck(
        event_name=event.event_name,
        event_status=event.event_status,
        timestamp=event.timestamp,
        request_id=event.request_id,
    )


@router.get("/nehtw", response_model=WebhookVerification)
async def verify_webhook(request: Request):
    """Endpoint check used by the vendor when a webhook URL is configured."""
    headers = request.headers
    logger.info(
        f"Webhook verification: event={headers.get(EVENT_NAME_HEADER)} "
        f"status={headers.get(STATUS_HEADER)} extra={headers.get('x-neh-extra')}"
    )
    return WebhookVerification(
        event_name=headers.get(EVENT_NAME_HEADER),
        event_status=headers.get(STATUS_HEADER),
    )


@router.api_route("/nehtw", methods=["PUT", "PATCH", "DELETE"], include_in_schema=False)
async def method_not_allowed():
    raise HTTPException(405, "Method not allowed")


@router.get("/stats", response_model=WebhookStats)
async def webhook_stats(processor: WebhookProcessor = Depends(get_processor)):
    return processor.stats()


@router.get("/events", response_model=list[str])
async def list_event_types():
    """List the event types the vendor documents."""
    return VALID_EVENTS


@router.get("/deliveries", response_model=list[DeliveryOut])
async def webhook_deliveries(
    event_name: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """Delivery attempts, newest first."""
    return await list_deliveries(db, event_name=event_name, skip=skip, limit=limit)
