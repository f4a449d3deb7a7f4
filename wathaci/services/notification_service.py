"""Payment notifications.

Builds a user-facing title/message for a payment event, stores it in the
notifications table and pushes it to the user's realtime channel. All of it
is best-effort: nothing here can change the webhook response.
"""

import logging
from decimal import Decimal

import requests
from flask import current_app

from wathaci.extensions import db
from wathaci.models.notification import Notification
from wathaci.services.persistence import run_write
from wathaci.services.realtime_service import publish, user_channel

logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "payment_update"

TITLES = {
    "payment.success": "Payment Successful",
    "payment.failed": "Payment Failed",
    "payment.pending": "Payment Pending",
    "payment.cancelled": "Payment Cancelled",
}

MESSAGES = {
    "payment.success": "Your payment of {amount} was successful.",
    "payment.failed": "Your payment of {amount} failed. Please try again.",
    "payment.pending": "Your payment of {amount} is being processed.",
    "payment.cancelled": "Your payment of {amount} was cancelled.",
}


def format_amount(amount, currency, local_codes=("ZMW", "ZMK"), local_symbol="K"):
    """Render a minor-unit amount for display.

    Local currency:  15000, "ZMW" -> "K150.00"
    Anything else:   15000, "USD" -> "150.00 USD"
    """
    major = (Decimal(str(amount or 0)) / 100).quantize(Decimal("0.01"))
    currency = (currency or "").upper()
    if currency in local_codes:
        return f"{local_symbol}{major}"
    return f"{major} {currency}".strip()


def get_notification_title(event_type):
    return TITLES.get(event_type, "Payment Update")


def get_notification_message(event_type, amount_text):
    template = MESSAGES.get(event_type, "Payment update for {amount}")
    return template.format(amount=amount_text)


def build_notification(event):
    """Build (unsaved) Notification for a payment event."""
    amount_text = format_amount(
        event.amount,
        event.currency,
        local_codes=current_app.config.get("LOCAL_CURRENCY_CODES", ("ZMW", "ZMK")),
        local_symbol=current_app.config.get("LOCAL_CURRENCY_SYMBOL", "K"),
    )
    return Notification(
        user_id=str(event.user_id),
        type=NOTIFICATION_TYPE,
        title=get_notification_title(event.event_type),
        message=get_notification_message(event.event_type, amount_text),
        data={
            "event": event.event_type,
            "reference": event.reference,
            "amount": str(event.amount),
            "currency": event.currency,
        },
        read=False,
    )


def notify(event):
    """Store and push a payment notification for event.metadata.user_id.

    Returns the saved Notification, or None if there was no user or the
    insert failed. Push failures are logged and swallowed.
    """
    if not event.user_id:
        return None

    notification = build_notification(event)

    def _insert():
        db.session.add(notification)
        return None

    result = run_write(
        "create payment notification",
        _insert,
        reference=event.reference,
        user_id=event.user_id,
    )
    if not result.ok:
        return None

    try:
        publish(user_channel(event.user_id), NOTIFICATION_TYPE, notification.to_dict())
    except requests.RequestException as e:
        logger.error(
            f"Realtime push failed for user {event.user_id} "
            f"(reference {event.reference}): {e}"
        )

    return notification
