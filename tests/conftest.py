"""Shared test fixtures for the payment webhook test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: pending payments, a subscription, a transaction and a booking
- sign / post_webhook: helpers to send correctly signed Lenco webhooks
"""

import json

import pytest

from wathaci import create_app
from wathaci.extensions import db as _db
from wathaci.models.booking import ServiceBooking
from wathaci.models.payment import Payment, Transaction
from wathaci.models.subscription import UserSubscription
from wathaci.services.signature_service import create_lenco_signature

WEBHOOK_URL = "/lenco/webhook"


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def seed_data(app, db_session):
    """Seed pending payment rows and their dependent records.

    WC_1  -> subscription s1 (transaction with the same reference)
    WC_2  -> service booking b1
    WC_3  -> standalone donation

    Returns plain ids so tests can use them across app contexts.
    """
    with app.app_context():
        _db.session.add_all([
            Payment(user_id="u1", reference="WC_1", amount=15000, currency="ZMW"),
            Payment(user_id="u1", reference="WC_2", amount=50000, currency="ZMW"),
            Payment(user_id="u2", reference="WC_3", amount=2500, currency="USD"),
            UserSubscription(id="s1", user_id="u1", plan_id="sme-basic"),
            Transaction(
                user_id="u1",
                reference_number="WC_1",
                transaction_type="subscription",
                amount=15000,
                currency="ZMW",
            ),
            ServiceBooking(id="b1", user_id="u1", provider_id="p1"),
        ])
        _db.session.commit()

    return {
        "user_id": "u1",
        "subscription_id": "s1",
        "booking_id": "b1",
        "subscription_reference": "WC_1",
        "booking_reference": "WC_2",
        "donation_reference": "WC_3",
    }


def _build_payload(event="payment.success", reference="WC_1", status="success",
                   amount="150.00", currency="ZMW", metadata=None, **extra):
    """Build a Lenco webhook payload dict."""
    data = {
        "id": f"lenco_txn_{reference}",
        "reference": reference,
        "amount": amount,
        "currency": currency,
        "status": status,
        "gateway_response": "Approved",
        "paid_at": "2026-10-18T09:30:00Z",
        "metadata": metadata if metadata is not None else {},
    }
    payload = {"event": event, "data": data}
    payload.update(extra)
    return payload


@pytest.fixture
def make_payload():
    """Return the payload builder (see _build_payload)."""
    return _build_payload


@pytest.fixture
def sign(app):
    """Return a function that signs a body with the test webhook secret."""

    def _sign(body, encoding="hex"):
        return create_lenco_signature(body, app.config["LENCO_WEBHOOK_SECRET"])[encoding]

    return _sign


@pytest.fixture
def post_webhook(client, sign):
    """Return a function that POSTs a correctly signed webhook.

    Accepts a dict (serialised to JSON) or a raw str/bytes body. Pass
    signature= to override the computed header (None omits it).
    """
    missing = object()

    def _post(payload, signature=missing, encoding="hex"):
        if isinstance(payload, dict):
            body = json.dumps(payload).encode("utf-8")
        elif isinstance(payload, str):
            body = payload.encode("utf-8")
        else:
            body = payload

        headers = {}
        if signature is missing:
            headers["x-lenco-signature"] = sign(body, encoding)
        elif signature is not None:
            headers["x-lenco-signature"] = signature

        return client.post(
            WEBHOOK_URL,
            data=body,
            content_type="application/json",
            headers=headers,
        )

    return _post
