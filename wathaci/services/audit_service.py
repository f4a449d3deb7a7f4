"""Webhook audit trail.

log_webhook_attempt() is the last thing every webhook request does, on the
happy path and on every rejection. It must never raise: a failure to write
the log row goes to the application log only.
"""

import logging

from wathaci.extensions import db
from wathaci.models.webhook_log import WebhookLog

logger = logging.getLogger(__name__)


def status_for_http(http_status):
    """Map an HTTP status to the log outcome."""
    if http_status < 400:
        return "processed"
    if http_status < 500:
        return "rejected"
    return "failed"


def _decode_body(raw_body):
    if raw_body is None:
        return None
    if isinstance(raw_body, (bytes, bytearray)):
        return raw_body.decode("utf-8", errors="replace")
    return raw_body


def log_webhook_attempt(source, event_type, payload, http_status, error=None,
                        reference=None, raw_body=None):
    """Persist one webhook_logs row.

    Args:
        source:      "lenco" for live deliveries, "lenco-replay" for CLI replays.
        event_type:  Event name if known, else "unknown".
        payload:     Parsed JSON body, or None if it never parsed.
        http_status: Status code returned to the sender.
        error:       Error message (rejections, failures, partial failures).
        reference:   Payment reference if known.
        raw_body:    Exact body received.

    Returns the WebhookLog, or None if it could not be written.
    """
    entry = WebhookLog(
        source=source,
        event_type=event_type or "unknown",
        reference=reference,
        status=status_for_http(http_status),
        http_status=http_status,
        payload=payload,
        raw_body=_decode_body(raw_body),
        error_message=error,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(
            f"Failed to write webhook log ({source} {event_type} "
            f"reference={reference} http={http_status}): {e}"
        )
        return None

    return entry
