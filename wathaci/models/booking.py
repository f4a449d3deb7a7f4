"""Service booking model (professional services bought through the marketplace)."""

import uuid

from wathaci.extensions import db


class ServiceBooking(db.Model):
    __tablename__ = "service_bookings"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(db.String(36), nullable=False, index=True)
    provider_id = db.Column(db.String(36), nullable=True)
    status = db.Column(
        db.String(50), nullable=False, default="pending"
    )  # pending | confirmed | cancelled | completed
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
        return f"<ServiceBooking {self.id} ({self.status})>"
