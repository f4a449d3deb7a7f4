"""Lenco webhook handling: verification, parsing and reconciliation.

Responsible for:
- Rejecting oversized, unsigned or wrongly signed deliveries (before parsing)
- Parsing the payload and rejecting malformed or stale events
- Updating the payment ledger, then fanning out to subscriptions/bookings
- Notifying the paying user
- Writing one webhook_logs row per request, always as the last step

Per request:

    RECEIVED -> SIGNATURE_CHECKED -> PARSED -> LEDGER_UPDATED
             -> RECONCILED -> NOTIFIED -> LOGGED

Rejections skip straight to LOGGED, and so do events outside the payment.*
family (transfers, collections, account transactions). Once the payload is verified and parsed
the sender gets 200 even if a downstream write failed; Lenco retries would
only repeat the same overwrites. The one exception is an unexpected error
escaping the ledger write, which answers 500.
"""

import logging

from flask import current_app

from wathaci.errors import (
    AuthenticationFailure,
    PayloadTooLarge,
    StaleEvent,
    ValidationFailure,
    WebhookError,
)
from wathaci.extensions import db
from wathaci.services.audit_service import log_webhook_attempt
from wathaci.services.ledger_service import record_payment
from wathaci.services.notification_service import notify
from wathaci.services.reconciliation_service import reconcile
from wathaci.services.signature_service import verify_lenco_signature
from wathaci.services.webhook_parser import is_stale, parse_webhook_payload

logger = logging.getLogger(__name__)

SOURCE_LENCO = "lenco"
SOURCE_REPLAY = "lenco-replay"


def _error_body(message):
    return {"success": False, "error": message}


def _reject(error, source, raw_body, event=None):
    """Log a rejected request and build its response."""
    logger.warning(
        f"Rejected Lenco webhook ({error.http_status} {error.message})"
        + (f": {error.detail}" if error.detail else "")
    )
    log_webhook_attempt(
        source,
        event.event_type if event else None,
        event.raw if event else None,
        error.http_status,
        error=error.detail or error.message,
        reference=event.reference if event else None,
        raw_body=raw_body,
    )
    return error.http_status, _error_body(error.message)


def check_request(raw_body, signature):
    """Size and signature checks for a live delivery.

    Raises PayloadTooLarge or AuthenticationFailure.
    """
    config = current_app.config
    max_bytes = config.get("LENCO_WEBHOOK_MAX_BYTES")
    if max_bytes and len(raw_body) > max_bytes:
        raise PayloadTooLarge(detail=f"{len(raw_body)} bytes > {max_bytes}")

    secret = config.get("LENCO_WEBHOOK_SECRET")
    if not signature or not secret:
        raise AuthenticationFailure(
            "Missing webhook authentication",
            detail="signature header missing" if secret else "webhook secret not configured",
        )

    if not verify_lenco_signature(signature, raw_body, secret):
        raise AuthenticationFailure(detail="signature mismatch")


def handle_lenco_webhook(raw_body, signature):
    """Handle one inbound Lenco webhook request.

    Args:
        raw_body:  Exact request body (bytes).
        signature: Signature header value, or None.

    Returns (http_status, response_body_dict).
    """
    try:
        check_request(raw_body, signature)
    except WebhookError as e:
        return _reject(e, SOURCE_LENCO, raw_body)

    return process_verified_body(raw_body, source=SOURCE_LENCO)


def process_verified_body(raw_body, source=SOURCE_LENCO, check_freshness=True):
    """Parse and apply a body whose signature has already been checked.

    Also the entry point for `flask replay-webhook`, which passes
    check_freshness=False since logged deliveries are old by definition.

    Returns (http_status, response_body_dict).
    """
    event = None
    try:
        event = parse_webhook_payload(raw_body)
        tolerance = current_app.config.get("LENCO_WEBHOOK_TOLERANCE_SECONDS", 0)
        if check_freshness and is_stale(event, tolerance):
            raise StaleEvent(detail=f"created_at={event.created_at.isoformat()}")
    except ValidationFailure as e:
        return _reject(e, source, raw_body, event=event)
    except Exception as e:
        logger.error(f"Webhook parse error: {e}", exc_info=True)
        log_webhook_attempt(
            source,
            event.event_type if event else None,
            event.raw if event else None,
            500,
            error=str(e),
            reference=event.reference if event else None,
            raw_body=raw_body,
        )
        return 500, _error_body(WebhookError.message)

    if not event.is_payment_event:
        logger.info(
            f"Received non-payment Lenco event {event.event_type} "
            f"(reference {event.reference}), logging only"
        )
        log_webhook_attempt(
            source, event.event_type, event.raw, 200,
            reference=event.reference, raw_body=raw_body,
        )
        return 200, {"success": True}

    logger.info(
        f"Processing Lenco webhook {event.event_type} for reference {event.reference}"
    )

    try:
        ledger = record_payment(event)
    except Exception as e:
        db.session.rollback()
        logger.error(
            f"Webhook processing error for reference {event.reference}: {e}",
            exc_info=True,
        )
        log_webhook_attempt(
            source, event.event_type, event.raw, 500,
            error=str(e), reference=event.reference, raw_body=raw_body,
        )
        return 500, _error_body(WebhookError.message)

    failures = []
    if ledger.error:
        failures.append(f"update payment: {ledger.error}")

    try:
        for result in reconcile(event):
            if not result.ok:
                failures.append(f"{result.label}: {result.error}")
    except Exception as e:
        db.session.rollback()
        logger.error(
            f"Reconciliation error for reference {event.reference}: {e}",
            exc_info=True,
        )
        failures.append(f"reconcile: {e}")

    try:
        notify(event)
    except Exception as e:
        db.session.rollback()
        logger.error(
            f"Notification error for user {event.user_id} "
            f"(reference {event.reference}): {e}",
            exc_info=True,
        )

    if failures:
        logger.warning(
            f"Webhook for reference {event.reference} partially applied: "
            + "; ".join(failures)
        )

    log_webhook_attempt(
        source, event.event_type, event.raw, 200,
        error="; ".join(failures) or None,
        reference=event.reference, raw_body=raw_body,
    )
    return 200, {"success": True}
