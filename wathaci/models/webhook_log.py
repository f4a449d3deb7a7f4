"""Webhook log model (forensic audit trail).

Every inbound webhook attempt gets exactly one row, whether it was
processed, rejected (bad signature, bad payload) or failed internally.
Rows are immutable once written; raw_body keeps the exact bytes received
so a delivery can be replayed with `flask replay-webhook`.
"""

import uuid

from wathaci.extensions import db


class WebhookLog(db.Model):
    __tablename__ = "webhook_logs"

    # -- Outcomes --
    STATUSES = [
        "processed",
        "rejected",
        "failed",
    ]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    source = db.Column(
        db.String(50), nullable=False, default="lenco"
    )  # lenco | lenco-replay
    event_type = db.Column(
        db.String(100), nullable=False, default="unknown"
    )  # e.g. "payment.success"
    reference = db.Column(db.String(255), nullable=True, index=True)
    status = db.Column(db.String(20), nullable=False)  # processed | rejected | failed
    http_status = db.Column(db.Integer, nullable=False)
    payload = db.Column(db.JSON, nullable=True)
    raw_body = db.Column(db.Text, nullable=True)
    error_message = db.Column(db.Text, nullable=True)
    processed_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    @property
    def signature_verified(self):
        """Only processed/failed rows made it past signature verification."""
        return self.status in ("processed", "failed")

    def __repr__(self):
        return f"<WebhookLog {self.event_type} {self.reference} ({self.status})>"
