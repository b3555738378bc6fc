"""Vendor-side resources whose state arrives through webhooks."""

from sqlalchemy import Column, DateTime, String, Text

from nehtw_webhooks.database import Base
from nehtw_webhooks.models import new_uuid, utcnow


class VendorOrder(Base):
    __tablename__ = "vendor_orders"

    id = Column(String(36), primary_key=True, default=new_uuid)
    vendor_order_id = Column(String(100), unique=True, nullable=False, index=True)
    user_id = Column(String(100), nullable=True, index=True)
    status = Column(String(20), default="pending")  # pending|processing|completed|failed
    vendor_status = Column(String(20), default="")
    detail = Column(Text, default="")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class VendorDownload(Base):
    __tablename__ = "vendor_downloads"

    id = Column(String(36), primary_key=True, default=new_uuid)
    vendor_download_id = Column(String(100), unique=True, nullable=False, index=True)
    vendor_order_id = Column(String(100), nullable=True, index=True)
    user_id = Column(String(100), nullable=True, index=True)
    status = Column(String(20), default="pending")  # pending|ready|expired
    download_url = Column(String(2048), default="")
    file_name = Column(String(500), default="")
    expires_at = Column(String(40), default="")  # vendor ISO timestamp, stored as sent
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class AIGenerationJob(Base):
    __tablename__ = "ai_generation_jobs"

    id = Column(String(36), primary_key=True, default=new_uuid)
    vendor_job_id = Column(String(100), unique=True, nullable=False, index=True)
    user_id = Column(String(100), nullable=True, index=True)
    status = Column(String(20), default="processing")  # processing|completed|failed
    image_url = Column(String(2048), default="")
    thumbnail_url = Column(String(2048), default="")
    error = Column(Text, default="")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
