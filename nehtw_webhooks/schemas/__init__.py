"""Pydantic schemas for webhook events, results and API responses."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


def utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Vocabulary ───────────────────────────────────────────
class EventStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PROCESSING = "processing"
    PENDING = "pending"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    REFUNDED = "refunded"


VALID_STATUSES = frozenset(s.value for s in EventStatus)

# Event types the vendor is documented to send. Others are acknowledged as no-ops.
VALID_EVENTS = [
    "order.completed",
    "order.failed",
    "order.processing",
    "order.cancelled",
    "order.refunded",
    "download.ready",
    "download.expired",
    "download.failed",
    "ai.completed",
    "ai.failed",
    "ai.processing",
    "user.credits_updated",
    "user.subscription_updated",
    "user.subscription_expired",
    "user.subscription_cancelled",
    "system.maintenance",
    "system.error",
    "system.recovery",
]


# ── Config ───────────────────────────────────────────────
class WebhookConfig(BaseModel):
    """Process-wide webhook settings, immutable once built."""

    secret: Optional[str] = None
    allowed_origins: frozenset[str] = frozenset()
    timeout: float = Field(30.0, gt=0)
    retry_attempts_max: int = Field(3, ge=0)
    retry_delay: float = Field(1.0, ge=0)
    drain_interval: float = Field(5.0, gt=0)

    model_config = {"frozen": True}


# ── Event ────────────────────────────────────────────────
class WebhookEvent(BaseModel):
    """A vendor notification as received.

    Required fields default to empty strings so that structural problems are
    reported by ``validate_event`` with a specific reason instead of failing
    at construction time.
    """

    event_name: str = Field("", frozen=True)
    event_status: str = ""
    timestamp: str = ""
    request_id: Optional[str] = None
    extra_info: Optional[str] = None
    user_id: Optional[str] = None
    order_id: Optional[str] = None
    task_id: Optional[str] = None
    job_id: Optional[str] = None
    download_id: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    # Owned by the retry queue
    retry_attempts: int = 0

    def resource_id(self, field: str, metadata_key: str) -> Optional[str]:
        """Return an id from the typed field, falling back to ``metadata``."""
        value = getattr(self, field)
        if value:
            return value
        if self.metadata and self.metadata.get(metadata_key) is not None:
            return str(self.metadata[metadata_key])
        return None

    def metadata_value(self, key: str) -> Any:
        return (self.metadata or {}).get(key)


# ── Results ──────────────────────────────────────────────
class ValidationResult(BaseModel):
    valid: bool
    event: Optional[WebhookEvent] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, event: WebhookEvent) -> "ValidationResult":
        return cls(valid=True, event=event)

    @classmethod
    def fail(cls, reason: str) -> "ValidationResult":
        return cls(valid=False, reason=reason)


class ProcessingResult(BaseModel):
    success: bool
    error: Optional[str] = None
    processed_at: str = Field(default_factory=utc_iso)
    event_name: str
    event_status: str
    request_id: Optional[str] = None
    attempt: int = 0
    duration_ms: int = 0
    # True: queued for another attempt, False: dropped or rejected, None: succeeded
    retry_scheduled: Optional[bool] = None


class DrainSummary(BaseModel):
    attempted: int = 0
    succeeded: int = 0
    requeued: int = 0
    dropped: int = 0


class WebhookStats(BaseModel):
    registered_handler_count: int
    registered_event_names: list[str]
    queue_depth: int
    drain_in_progress: bool
    retry_processor_running: bool = False
    processed_total: int = 0
    failed_total: int = 0
    dropped_total: int = 0


# ── API responses ────────────────────────────────────────
class WebhookAck(BaseModel):
    received: bool = True
    event_name: str
    event_status: str
    timestamp: str
    request_id: Optional[str] = None


class WebhookVerification(BaseModel):
    verified: bool = True
    event_name: Optional[str] = None
    event_status: Optional[str] = None
    timestamp: str = Field(default_factory=utc_iso)


class DeliveryOut(BaseModel):
    id: str
    event_name: str
    event_status: str
    request_id: Optional[str] = None
    success: bool
    error: str
    attempt: int
    duration_ms: int
    created_at: datetime

    model_config = {"from_attributes": True}
