"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from nehtw_webhooks import __version__
from nehtw_webhooks.api import webhooks
from nehtw_webhooks.config import get_settings
from nehtw_webhooks.database import async_session, init_models
from nehtw_webhooks.errors import WebhookError
from nehtw_webhooks.services.delivery_log import delivery_recorder
from nehtw_webhooks.services.handlers import register_default_handlers
from nehtw_webhooks.services.notifications import EmailNotifier
from nehtw_webhooks.services.processor import WebhookProcessor

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def build_processor() -> WebhookProcessor:
    """Processor with the default handlers and the delivery log wired in."""
    processor = WebhookProcessor(settings.webhook_config())
    register_default_handlers(processor, async_session, EmailNotifier(settings))
    processor.add_result_listener(delivery_recorder(async_session))
    return processor


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    processor: WebhookProcessor = app.state.webhook_processor
    processor.start_retry_processor()
    yield
    await processor.stop_retry_processor()
    depth = processor.queue.depth
    if depth:
        logger.warning(f"Shutting down with {depth} webhook events still queued for retry")


async def webhook_error_handler(request: Request, exc: WebhookError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def create_app(processor: Optional[WebhookProcessor] = None) -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Inbound webhook processing for the nehtw fulfillment vendor",
        lifespan=lifespan,
    )
    app.state.webhook_processor = processor or build_processor()
    app.add_exception_handler(WebhookError, webhook_error_handler)
    app.include_router(webhooks.router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok", "app": settings.app_name}

    return app


app = create_app()
