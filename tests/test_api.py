"""HTTP tests for the inbound webhook endpoint and introspection routes."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from nehtw_webhooks.main import create_app
from nehtw_webhooks.schemas import WebhookConfig
from nehtw_webhooks.services.processor import WebhookProcessor
from nehtw_webhooks.services.verification import sign_payload

SECRET = "abc"
URL = "/api/v1/webhooks/nehtw"
BODY = b'{"a":1}'
TS = "2026-10-18T12:00:00Z"


def _headers(body: bytes = BODY, **extra) -> dict:
    headers = {
        "x-neh-event_name": "order.completed",
        "x-neh-status": "success",
        "x-neh-timestamp": TS,
        "x-neh-request_id": "req-123",
        "x-neh-signature": sign_payload(body, SECRET),
        "content-type": "application/json",
    }
    headers.update(extra)
    return headers


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_signed_webhook_accepted(client: AsyncClient):
    resp = await client.post(URL, content=BODY, headers=_headers())
    assert resp.status_code == 200
    assert resp.json() == {
        "received": True,
        "event_name": "order.completed",
        "event_status": "success",
        "timestamp": TS,
        "request_id": "req-123",
    }


@pytest.mark.asyncio
async def test_missing_signature_rejected(client: AsyncClient, processor: WebhookProcessor):
    handler = AsyncMock()
    processor.register_handler("order.completed", handler)
    headers = _headers()
    del headers["x-neh-signature"]

    resp = await client.post(URL, content=BODY, headers=headers)

    assert resp.status_code == 401
    assert resp.json()["error"] == "invalid_signature"
    handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_wrong_signature_rejected(client: AsyncClient):
    resp = await client.post(URL, content=BODY, headers=_headers(**{"x-neh-signature": "0" * 64}))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_missing_required_headers(client: AsyncClient):
    headers = _headers()
    del headers["x-neh-status"]
    resp = await client.post(URL, content=BODY, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "missing_headers"


@pytest.mark.asyncio
async def test_schema_invalid_event_rejected(client: AsyncClient, processor: WebhookProcessor):
    handler = AsyncMock()
    processor.register_handler("order.completed", handler)

    resp = await client.post(URL, content=BODY, headers=_headers(**{"x-neh-status": "bogus"}))

    assert resp.status_code == 400
    assert resp.json() == {"error": "invalid_event", "message": "Invalid event status"}
    handler.assert_not_awaited()
    assert processor.stats().queue_depth == 0


@pytest.mark.asyncio
async def test_invalid_json_body_rejected(client: AsyncClient):
    body = b"{not json"
    resp = await client.post(URL, content=body, headers=_headers(body))
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_payload"


@pytest.mark.asyncio
async def test_body_and_headers_reach_handler(client: AsyncClient, processor: WebhookProcessor):
    handler = AsyncMock()
    processor.register_handler("order.completed", handler)
    body = b'{"orderId": "o-9", "email": "buyer@example.com"}'

    resp = await client.post(
        URL,
        content=body,
        headers=_headers(body, **{"x-neh-user_id": "u-1", "x-neh-extra": "note"}),
    )

    assert resp.status_code == 200
    event = handler.await_args.args[0]
    assert event.metadata == {"orderId": "o-9", "email": "buyer@example.com"}
    assert event.user_id == "u-1"
    assert event.extra_info == "note"
    assert event.request_id == "req-123"


@pytest.mark.asyncio
async def test_timestamp_defaults_to_now(client: AsyncClient):
    headers = _headers()
    del headers["x-neh-timestamp"]
    del headers["x-neh-request_id"]
    resp = await client.post(URL, content=BODY, headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["timestamp"].startswith("20")
    assert data["request_id"] is None


@pytest.mark.asyncio
async def test_handler_failure_still_acknowledged(client: AsyncClient, processor: WebhookProcessor):
    processor.register_handler("order.completed", AsyncMock(side_effect=RuntimeError("db down")))

    resp = await client.post(URL, content=BODY, headers=_headers())

    assert resp.status_code == 200
    assert resp.json()["received"] is True
    assert processor.stats().queue_depth == 1


@pytest.mark.asyncio
async def test_unknown_event_acknowledged(client: AsyncClient):
    resp = await client.post(URL, content=BODY, headers=_headers(**{"x-neh-event_name": "media.indexed"}))
    assert resp.status_code == 200
    assert resp.json()["event_name"] == "media.indexed"


@pytest.mark.asyncio
async def test_origin_allow_list():
    allowed = WebhookProcessor(WebhookConfig(secret=SECRET, allowed_origins={"127.0.0.1"}))
    denied = WebhookProcessor(WebhookConfig(secret=SECRET, allowed_origins={"10.0.0.1"}))

    for processor, expected in ((allowed, 200), (denied, 403)):
        transport = ASGITransport(app=create_app(processor), client=("127.0.0.1", 5000))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            resp = await ac.post(URL, content=BODY, headers=_headers())
        assert resp.status_code == expected

    assert resp.json()["error"] == "unauthorized_origin"


@pytest.mark.asyncio
async def test_insecure_mode_accepts_unsigned():
    processor = WebhookProcessor(WebhookConfig(secret=None))
    transport = ASGITransport(app=create_app(processor))
    headers = _headers()
    del headers["x-neh-signature"]
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        resp = await ac.post(URL, content=BODY, headers=headers)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_verification_ping(client: AsyncClient):
    resp = await client.get(URL, headers={"x-neh-event_name": "order.completed", "x-neh-status": "pending"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["verified"] is True
    assert data["event_name"] == "order.completed"
    assert data["event_status"] == "pending"


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
async def test_other_methods_not_allowed(client: AsyncClient, method):
    resp = await client.request(method, URL)
    assert resp.status_code == 405


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, processor: WebhookProcessor):
    processor.register_handler("order.completed", AsyncMock())
    resp = await client.get("/api/v1/webhooks/stats")
    assert resp.status_code == 200
    data = resp.json()
    assert data["registered_handler_count"] == 1
    assert data["registered_event_names"] == ["order.completed"]
    assert data["queue_depth"] == 0
    assert data["drain_in_progress"] is False


@pytest.mark.asyncio
async def test_list_event_types(client: AsyncClient):
    resp = await client.get("/api/v1/webhooks/events")
    assert resp.status_code == 200
    events = resp.json()
    assert "order.completed" in events
    assert "system.error" in events
