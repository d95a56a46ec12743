"""Draft model.

Generated HTML awaiting payment. Keyed by an opaque random token that is
also carried in the checkout session metadata. A draft has no owner; it is
read once when the payment webhook promotes it to a Site, then deleted.
Drafts from abandoned checkouts are reclaimed by `flask purge-drafts`.
"""

import uuid

from onepage.extensions import db


def new_draft_id():
    """Return a fresh 128-bit random draft token."""
    return str(uuid.uuid4())


class Draft(db.Model):
    __tablename__ = "opf_drafts"

    draft_id = db.Column(db.String(36), primary_key=True, default=new_draft_id)
    html = db.Column(db.Text, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now(), index=True
    )

    def __repr__(self):
        return f"<Draft {self.draft_id} ({len(self.html or '')} chars)>"
