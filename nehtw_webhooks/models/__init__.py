"""SQLAlchemy models — portable across SQLite and PostgreSQL."""

import uuid
from datetime import datetime, timezone


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


from nehtw_webhooks.models.fulfillment import AIGenerationJob, VendorDownload, VendorOrder  # noqa: E402
from nehtw_webhooks.models.webhook import WebhookDelivery  # noqa: E402

__all__ = [
    "AIGenerationJob",
    "VendorDownload",
    "VendorOrder",
    "WebhookDelivery",
    "new_uuid",
    "utcnow",
]
