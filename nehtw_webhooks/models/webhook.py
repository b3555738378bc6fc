"""Delivery log for inbound webhook events."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from nehtw_webhooks.database import Base
from nehtw_webhooks.models import new_uuid, utcnow


class WebhookDelivery(Base):
    """One processing attempt of an inbound event (initial or retry)."""

    __tablename__ = "webhook_deliveries"

    id = Column(String(36), primary_key=True, default=new_uuid)
    event_name = Column(String(100), nullable=False, index=True)
    event_status = Column(String(20), nullable=False)
    request_id = Column(String(100), nullable=True, index=True)
    payload = Column(Text, default="{}")  # event as JSON
    success = Column(Boolean, default=False)
    error = Column(Text, default="")
    attempt = Column(Integer, default=0)  # 0 = first delivery
    retry_scheduled = Column(Boolean, nullable=True)
    duration_ms = Column(Integer, default=0)
    created_at = Column(DateTime, default=utcnow)
