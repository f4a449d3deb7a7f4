"""Lenco webhook payload parsing and normalisation.

Turns the raw request body into a WebhookEvent. Pure: no database access,
no logging of payload contents beyond warnings about dropped fields.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from wathaci.errors import MalformedPayload

logger = logging.getLogger(__name__)

PAYMENT_EVENT_TYPES = (
    "payment.success",
    "payment.failed",
    "payment.pending",
    "payment.cancelled",
)

# Other "payment." subtypes are still applied as payment updates.
# transfer.*, collection.* and transaction.* events are audit-only.
PAYMENT_EVENT_PREFIX = "payment."

# Lenco status -> internal payment status. Unknown values fail closed.
LENCO_STATUS_MAP = {
    "success": "completed",
    "failed": "failed",
    "pending": "pending",
    "cancelled": "cancelled",
    "abandoned": "cancelled",
}


def map_lenco_status(lenco_status):
    """Map a raw Lenco status to the internal payment status."""
    if not isinstance(lenco_status, str):
        return "failed"
    return LENCO_STATUS_MAP.get(lenco_status.strip().lower(), "failed")


@dataclass(frozen=True)
class PaymentPurpose:
    """What a payment paid for, derived once from the metadata bag.

    kind is "subscription", "booking" or "standalone" (donations and other
    payments with no dependent record). A payment pays for one kind of
    purchasable only; if both ids are present the subscription wins.
    """

    kind: str
    target_id: str = None

    SUBSCRIPTION = "subscription"
    BOOKING = "booking"
    STANDALONE = "standalone"

    @classmethod
    def from_metadata(cls, metadata):
        subscription_id = metadata.get("subscription_id")
        service_id = metadata.get("service_id")
        if subscription_id and service_id:
            logger.warning(
                f"Payment metadata has both subscription_id={subscription_id} "
                f"and service_id={service_id}; treating as subscription"
            )
        if subscription_id:
            return cls(cls.SUBSCRIPTION, str(subscription_id))
        if service_id:
            return cls(cls.BOOKING, str(service_id))
        return cls(cls.STANDALONE)


@dataclass
class WebhookEvent:
    event_type: str
    reference: str
    status: str
    internal_status: str
    amount: Decimal = Decimal("0")
    currency: str = ""
    transaction_id: str = None
    gateway_response: str = None
    paid_at: datetime = None
    created_at: datetime = None
    metadata: dict = field(default_factory=dict)
    raw: dict = field(default_factory=dict, repr=False)

    @property
    def purpose(self):
        return PaymentPurpose.from_metadata(self.metadata)

    @property
    def user_id(self):
        return self.metadata.get("user_id")

    @property
    def is_payment_event(self):
        return self.event_type.startswith(PAYMENT_EVENT_PREFIX)

    @property
    def succeeded(self):
        """True only for Lenco's "success" status."""
        return self.status.strip().lower() == "success"


def parse_timestamp(value):
    """Parse an ISO-8601 timestamp (with optional trailing Z) to an aware datetime.

    Returns None for empty input. Raises ValueError for unparseable input.
    """
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO timestamp string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_amount(value):
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        raise MalformedPayload("Invalid payload structure", detail="data.amount")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise MalformedPayload("Invalid payload structure", detail="data.amount")
    if not amount.is_finite() or amount < 0:
        raise MalformedPayload("Invalid payload structure", detail="data.amount")
    return amount


def _required_string(container, key, path):
    value = container.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MalformedPayload("Invalid payload structure", detail=path)
    return value.strip()


def parse_webhook_payload(raw_body):
    """Parse and validate a Lenco webhook body.

    Args:
        raw_body: Request body as bytes or str.

    Returns a WebhookEvent.
    Raises MalformedPayload if the body is not a JSON object or `event` /
    `data.reference` are missing.
    """
    if isinstance(raw_body, (bytes, bytearray)):
        try:
            raw_body = raw_body.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedPayload("Invalid payload", detail="body is not UTF-8")

    try:
        payload = json.loads(raw_body)
    except (TypeError, ValueError, RecursionError) as e:
        raise MalformedPayload("Invalid payload", detail=f"invalid JSON: {e}")

    if not isinstance(payload, dict):
        raise MalformedPayload("Invalid payload", detail="body is not a JSON object")

    event_type = _required_string(payload, "event", "event")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise MalformedPayload("Invalid payload structure", detail="data")

    reference = _required_string(data, "reference", "data.reference")

    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise MalformedPayload("Invalid payload structure", detail="data.metadata")

    raw_status = data.get("status")
    status = raw_status.strip() if isinstance(raw_status, str) else ""

    try:
        paid_at = parse_timestamp(data.get("paid_at"))
    except ValueError:
        logger.warning(
            f"Dropping unparseable paid_at {data.get('paid_at')!r} for reference {reference}"
        )
        paid_at = None

    try:
        created_at = parse_timestamp(payload.get("created_at"))
    except ValueError:
        raise MalformedPayload("Invalid payload structure", detail="created_at")

    transaction_id = data.get("id")

    return WebhookEvent(
        event_type=event_type,
        reference=reference,
        status=status,
        internal_status=map_lenco_status(status),
        amount=_parse_amount(data.get("amount")),
        currency=str(data.get("currency") or "").strip().upper(),
        transaction_id=str(transaction_id) if transaction_id is not None else None,
        gateway_response=data.get("gateway_response"),
        paid_at=paid_at,
        created_at=created_at,
        metadata=metadata,
        raw=payload,
    )


def is_stale(event, tolerance_seconds, now=None):
    """True if event.created_at is set and outside +/- tolerance of now.

    A tolerance of 0 (or less) disables the check.
    """
    if tolerance_seconds <= 0 or event.created_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return abs((now - event.created_at).total_seconds()) > tolerance_seconds
