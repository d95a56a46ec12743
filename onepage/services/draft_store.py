"""Draft store — generated HTML parked until payment completes.

Primary storage is the opf_drafts table. If the database write fails and
a site worker is configured, the draft is written to the worker under
``_drafts/<draft_id>`` instead; reads check the database first, then the
worker.

Draft ids are uuid4 tokens — no uniqueness check is made on put.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError

from onepage.errors import UpstreamTransportError
from onepage.extensions import db
from onepage.models.draft import Draft

logger = logging.getLogger(__name__)

WORKER_PREFIX = "_drafts/"
DELETED_MARKER = "<!-- expired -->"


class DraftStore:

    def __init__(self, site_worker=None):
        self.site_worker = site_worker

    def put(self, draft_id, html):
        """Persist ``html`` under ``draft_id``. Raises UpstreamTransportError
        if neither backend accepted it."""
        try:
            db.session.merge(Draft(draft_id=draft_id, html=html))
            db.session.commit()
            logger.info(f"Draft saved to database: {draft_id}")
            return
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(f"Draft DB write failed, trying worker fallback: {e}")
            if self.site_worker is None:
                raise UpstreamTransportError() from e

        self.site_worker.update_html(f"{WORKER_PREFIX}{draft_id}", html)
        logger.info(f"Draft saved to worker: {WORKER_PREFIX}{draft_id}")

    def get(self, draft_id):
        """Return the draft html, or None if no backend has it."""
        try:
            draft = db.session.get(Draft, draft_id)
            if draft is not None:
                return draft.html
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(f"Draft DB read failed: {e}")

        if self.site_worker is None:
            return None

        html = self.site_worker.get_html(f"{WORKER_PREFIX}{draft_id}")
        if not html or html == DELETED_MARKER:
            return None
        return html

    def delete(self, draft_id):
        """Remove a consumed draft. Best effort — logs and returns on failure."""
        try:
            deleted = Draft.query.filter_by(draft_id=draft_id).delete()
            db.session.commit()
            if deleted:
                return
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(f"Draft DB delete failed for {draft_id}: {e}")

        if self.site_worker is None:
            return
        try:
            # The worker has no delete endpoint; overwrite with a marker.
            self.site_worker.update_html(f"{WORKER_PREFIX}{draft_id}", DELETED_MARKER)
        except Exception as e:
            logger.warning(f"Failed to delete worker draft {draft_id}: {e}")

    def purge_older_than(self, max_age_hours):
        """Delete database drafts older than ``max_age_hours``. Returns count."""
        cutoff = datetime.now(timezone.utc) - timedelta(hours=max_age_hours)
        count = Draft.query.filter(Draft.created_at < cutoff).delete()
        db.session.commit()
        logger.info(f"Purged {count} drafts older than {max_age_hours}h")
        return count
