"""User subscription model.

status is what gates marketplace access; payment_status mirrors the outcome
of the latest payment webhook for this subscription.
"""

import uuid

from wathaci.extensions import db


class UserSubscription(db.Model):
    __tablename__ = "user_subscriptions"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(db.String(36), nullable=False, index=True)
    plan_id = db.Column(db.String(100), nullable=True)
    status = db.Column(
        db.String(50), nullable=False, default="pending"
    )  # pending | active | cancelled | expired
    payment_status = db.Column(
        db.String(50), nullable=False, default="pending"
    )  # pending | paid | failed
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self):
        return f"<UserSubscription {self.id} ({self.status}/{self.payment_status})>"
