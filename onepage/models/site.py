"""Site model.

A published one-page site. The subdomain is the primary key, so a second
insert for the same subdomain fails at the database no matter how many
webhook deliveries race for it. draft_id is unique for the same reason.

html here is the source of truth for the site's content; the worker only
serves a copy (or an "unavailable" page while the subscription is lapsed).
"""

from onepage.extensions import db


class Site(db.Model):
    __tablename__ = "opf_sites"

    COLOR_THEMES = ["simple", "colorful", "business"]

    subdomain = db.Column(db.String(63), primary_key=True)
    draft_id = db.Column(db.String(36), unique=True, nullable=True)
    email = db.Column(db.String(255), nullable=False)
    site_name = db.Column(db.String(255), nullable=False)
    color_theme = db.Column(db.String(20), nullable=False, default="simple")
    form_data = db.Column(db.JSON, nullable=False, default=dict)  # snapshot at publish
    html = db.Column(db.Text, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    revision_count = db.Column(db.Integer, default=0, nullable=False)

    stripe_customer_id = db.Column(db.String(255), nullable=True)
    stripe_checkout_session_id = db.Column(db.String(255), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    subscriptions = db.relationship(
        "Subscription", back_populates="site", lazy="dynamic"
    )

    def __repr__(self):
        state = "active" if self.is_active else "inactive"
        return f"<Site {self.subdomain} ({state})>"
