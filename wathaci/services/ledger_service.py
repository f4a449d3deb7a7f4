"""Payment ledger writer.

Applies a webhook outcome to the payments row with the same reference.
The row must already exist (it is created when the payment is initialised);
an unknown reference is a no-op, since Lenco also sends events for payments
started outside the app (dashboard tests, manual collections).

Updates are plain overwrites, so a retried or duplicated delivery of the same
event lands on the same final state.
"""

import logging
from collections import namedtuple
from datetime import datetime, timezone

from wathaci.models.payment import Payment
from wathaci.services.persistence import run_write

logger = logging.getLogger(__name__)

LedgerResult = namedtuple("LedgerResult", ["applied", "error"])


def record_payment(event):
    """Update the payment row for event.reference.

    Returns LedgerResult(applied, error). applied is False when no row
    matched or the write failed; error is set only on failure.
    """

    def _update():
        return Payment.query.filter_by(reference=event.reference).update(
            {
                Payment.status: event.internal_status,
                Payment.lenco_transaction_id: event.transaction_id,
                Payment.gateway_response: event.gateway_response,
                Payment.paid_at: event.paid_at,
                Payment.updated_at: datetime.now(timezone.utc),
            },
            synchronize_session=False,
        )

    result = run_write(
        "update payment",
        _update,
        reference=event.reference,
        user_id=event.user_id,
    )

    if not result.ok:
        return LedgerResult(False, result.error)

    if not result.rowcount:
        logger.info(f"No payment row for reference {event.reference}, nothing to update")
        return LedgerResult(False, None)

    logger.info(
        f"Payment {event.reference} marked {event.internal_status} ({event.event_type})"
    )
    return LedgerResult(True, None)
