"""Boundary errors for inbound webhooks.

Each error maps to the HTTP status returned to the vendor. Handler failures are
not represented here: they stay inside the dispatcher and the retry queue.
"""


class WebhookError(Exception):
    """Base class for errors that reject a webhook at the boundary."""

    code = "webhook_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class MissingHeadersError(WebhookError):
    code = "missing_headers"
    status_code = 400


class InvalidPayloadError(WebhookError):
    code = "invalid_payload"
    status_code = 400


class SignatureError(WebhookError):
    code = "invalid_signature"
    status_code = 401


class OriginError(WebhookError):
    code = "unauthorized_origin"
    status_code = 403


class EventValidationError(WebhookError):
    code = "invalid_event"
    status_code = 400
