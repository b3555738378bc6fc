"""Shared route dependencies."""

from fastapi import Request

from nehtw_webhooks.services.processor import WebhookProcessor


def get_processor(request: Request) -> WebhookProcessor:
    return request.app.state.webhook_processor
