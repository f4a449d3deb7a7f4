"""Payment ledger models.

- Payment: one row per payment attempt, keyed by the Lenco reference.
  Rows are created when a payment is initialised (outside this service);
  webhooks only ever update them.
- Transaction: wallet/ledger entry for subscription purchases, matched by
  reference_number and settled alongside the subscription.
"""

import uuid

from wathaci.extensions import db


class Payment(db.Model):
    __tablename__ = "payments"

    # -- Internal statuses (normalised from Lenco's raw status) --
    STATUSES = [
        "pending",
        "completed",
        "failed",
        "cancelled",
    ]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(db.String(36), nullable=True, index=True)
    reference = db.Column(
        db.String(255), unique=True, nullable=False
    )  # e.g. "WC_1700000000_abc"
    amount = db.Column(db.Numeric(12, 2), nullable=True)
    currency = db.Column(db.String(8), nullable=True)
    status = db.Column(
        db.String(50), nullable=False, default="pending"
    )  # pending | completed | failed | cancelled
    lenco_transaction_id = db.Column(db.String(255), nullable=True)
    gateway_response = db.Column(db.Text, nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    metadata_ = db.Column(
        "metadata", db.JSON, default=dict
    )  # named metadata_ to avoid the declarative attribute clash
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self):
        return f"<Payment {self.reference} ({self.status})>"


class Transaction(db.Model):
    __tablename__ = "transactions"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(db.String(36), nullable=True)
    reference_number = db.Column(db.String(255), nullable=False, index=True)
    transaction_type = db.Column(
        db.String(50), nullable=True
    )  # subscription | service_purchase | donation
    amount = db.Column(db.Numeric(12, 2), nullable=True)
    currency = db.Column(db.String(8), nullable=True)
    status = db.Column(
        db.String(50), nullable=False, default="pending"
    )  # pending | completed | failed
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self):
        return f"<Transaction {self.reference_number} ({self.status})>"
