"""Fan-out reconciler.

After the payment row is updated, settles whatever the payment paid for:

    subscription -> user_subscriptions (status, payment_status)
                    + transactions matched by reference_number
    booking      -> service_bookings (payment_status, status)
    standalone   -> nothing (donations, ad-hoc payments)

Every write is independent: a failed subscription update does not stop the
transaction update, and nothing here raises into the webhook handler.
"""

import logging
from datetime import datetime, timezone

from wathaci.models.booking import ServiceBooking
from wathaci.models.payment import Transaction
from wathaci.models.subscription import UserSubscription
from wathaci.services.persistence import run_write
from wathaci.services.webhook_parser import PaymentPurpose

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


def _update_by(model, column, value, values):
    """Return a callable that overwrites `values` on rows where column == value."""

    def _update():
        values[model.updated_at] = _now()
        return model.query.filter(column == value).update(
            values, synchronize_session=False
        )

    return _update


def _warn_if_missing(result, what, key, reference):
    if result.ok and not result.rowcount:
        logger.warning(f"No {what} found for {key} (payment reference {reference})")


def _reconcile_subscription(event, subscription_id):
    succeeded = event.succeeded
    results = []

    sub_result = run_write(
        "update subscription payment state",
        _update_by(UserSubscription, UserSubscription.id, subscription_id, {
            UserSubscription.status: "active" if succeeded else "cancelled",
            UserSubscription.payment_status: "paid" if succeeded else "failed",
        }),
        reference=event.reference,
        user_id=event.user_id,
        subscription_id=subscription_id,
    )
    _warn_if_missing(sub_result, "subscription", subscription_id, event.reference)
    results.append(sub_result)

    txn_result = run_write(
        "update subscription transaction status",
        _update_by(Transaction, Transaction.reference_number, event.reference, {
            Transaction.status: "completed" if succeeded else "failed",
        }),
        reference=event.reference,
        subscription_id=subscription_id,
    )
    results.append(txn_result)

    if sub_result.ok and sub_result.rowcount:
        logger.info(
            f"Subscription {subscription_id} updated to "
            f"{'active' if succeeded else 'cancelled'}"
        )
    return results


def _reconcile_booking(event, booking_id):
    succeeded = event.succeeded

    result = run_write(
        "update service booking payment state",
        _update_by(ServiceBooking, ServiceBooking.id, booking_id, {
            ServiceBooking.payment_status: "paid" if succeeded else "failed",
            ServiceBooking.status: "confirmed" if succeeded else "cancelled",
        }),
        reference=event.reference,
        user_id=event.user_id,
        service_id=booking_id,
    )
    _warn_if_missing(result, "service booking", booking_id, event.reference)
    if result.ok and result.rowcount:
        logger.info(f"Service booking {booking_id} payment updated")
    return [result]


def reconcile(event):
    """Settle the dependent record for a payment event.

    Returns the list of WriteResults (empty for standalone payments).
    """
    purpose = event.purpose

    if purpose.kind == PaymentPurpose.SUBSCRIPTION:
        return _reconcile_subscription(event, purpose.target_id)
    if purpose.kind == PaymentPurpose.BOOKING:
        return _reconcile_booking(event, purpose.target_id)

    logger.info(f"Payment {event.reference} has no dependent record to reconcile")
    return []
