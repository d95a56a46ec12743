"""Ad event model.

Append-only funnel events (page_view → form_start → checkout_start →
subscribed) with UTM attribution. Writes are best effort.
"""

import uuid

from onepage.extensions import db


class AdEvent(db.Model):
    __tablename__ = "opf_ad_events"

    EVENT_TYPES = ["page_view", "form_start", "checkout_start", "subscribed"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    event_type = db.Column(db.String(30), nullable=False, index=True)
    session_id = db.Column(db.String(255), nullable=True, index=True)
    site_subdomain = db.Column(db.String(63), nullable=True)
    page_url = db.Column(db.Text, nullable=True)
    referrer = db.Column(db.Text, nullable=True)
    user_agent = db.Column(db.Text, nullable=True)
    utm_source = db.Column(db.String(255), nullable=True)
    utm_medium = db.Column(db.String(255), nullable=True)
    utm_campaign = db.Column(db.String(255), nullable=True)
    utm_content = db.Column(db.String(255), nullable=True)
    utm_term = db.Column(db.String(255), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<AdEvent {self.event_type} session={self.session_id}>"
