"""Subscription model.

Tracks the monthly subscription that keeps a site online, synced from
Stripe webhooks.
"""

import uuid

from onepage.extensions import db


class Subscription(db.Model):
    __tablename__ = "opf_subscriptions"

    # -- Valid statuses (synced from Stripe) --
    STATUSES = [
        "active",
        "past_due",
        "canceled",
        "trialing",
        "unpaid",
        "incomplete",
        "incomplete_expired",
        "paused",
    ]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    site_subdomain = db.Column(
        db.String(63), db.ForeignKey("opf_sites.subdomain"), nullable=False
    )
    stripe_subscription_id = db.Column(
        db.String(255), unique=True, nullable=False
    )
    stripe_customer_id = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(50), nullable=False)
    cancel_at_period_end = db.Column(db.Boolean, default=False)
    current_period_start = db.Column(db.DateTime(timezone=True), nullable=True)
    current_period_end = db.Column(db.DateTime(timezone=True), nullable=True)
    canceled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    site = db.relationship("Site", back_populates="subscriptions")

    def __repr__(self):
        return f"<Subscription {self.stripe_subscription_id} ({self.status})>"
