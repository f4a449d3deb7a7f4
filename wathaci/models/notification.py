"""Notification model.

Append-only: one row per processed payment event for a known user.
Rows are never updated by this service (the front end flips `read`).
"""

import uuid

from wathaci.extensions import db


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(db.String(36), nullable=False, index=True)
    type = db.Column(db.String(50), nullable=False, default="payment_update")
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    data = db.Column(db.JSON, default=dict)
    read = db.Column(db.Boolean, default=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def to_dict(self):
        """Shape pushed over the realtime channel."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "data": self.data or {},
            "read": bool(self.read),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Notification {self.title} -> {self.user_id}>"
