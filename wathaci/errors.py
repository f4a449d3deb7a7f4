"""Webhook error taxonomy.

Each error carries the HTTP status the webhook endpoint answers with and a
public message that is safe to echo back to the sender. Persistence failures
are not raised across branches; see services.persistence.WriteResult.
"""


class WebhookError(Exception):
    http_status = 500
    message = "Webhook processing failed"

    def __init__(self, message=None, detail=None):
        if message:
            self.message = message
        # Internal detail for logs only, never sent to the caller
        self.detail = detail
        super().__init__(self.message)


class AuthenticationFailure(WebhookError):
    """Missing or invalid webhook signature."""

    http_status = 401
    message = "Invalid webhook signature"


class ValidationFailure(WebhookError):
    http_status = 400
    message = "Invalid payload"


class MalformedPayload(ValidationFailure):
    """Body is not JSON, or required fields are missing."""


class StaleEvent(ValidationFailure):
    """created_at is outside the accepted replay window."""

    message = "Stale webhook event"


class PayloadTooLarge(WebhookError):
    http_status = 413
    message = "Payload too large"
