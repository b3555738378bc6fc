"""Structural validation of webhook events."""

import re
from datetime import datetime

from pydantic import TypeAdapter, ValidationError

from nehtw_webhooks.schemas import VALID_STATUSES, ValidationResult, WebhookEvent

EVENT_NAME_PATTERN = re.compile(r"^[a-z]+\.[a-z_]+$")

_datetime_adapter = TypeAdapter(datetime)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp.

    Accepts ``Z`` or numeric offsets (``+00:00`` and ``+0000``), a space instead
    of ``T``, and fractions of any precision. Raises ``ValidationError``, a
    ``ValueError`` subclass, when the value is not a timestamp.
    """
    return _datetime_adapter.validate_python(value)


def validate_event(event: WebhookEvent) -> ValidationResult:
    """Check required fields, event name shape, status and timestamp.

    The first failing check decides the reason; nothing is defaulted.
    """
    if not event.event_name:
        return ValidationResult.fail("Missing event name")
    if not event.event_status:
        return ValidationResult.fail("Missing event status")
    if not event.timestamp:
        return ValidationResult.fail("Missing timestamp")

    if not EVENT_NAME_PATTERN.fullmatch(event.event_name):
        return ValidationResult.fail("Invalid event name format")

    if event.event_status not in VALID_STATUSES:
        return ValidationResult.fail("Invalid event status")

    try:
        parse_timestamp(event.timestamp)
    except ValidationError:
        return ValidationResult.fail("Invalid timestamp format")

    return ValidationResult.ok(event)
