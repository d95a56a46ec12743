"""Tests for the draft store — database first, worker fallback."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from onepage.errors import UpstreamTransportError
from onepage.extensions import db
from onepage.models.draft import Draft, new_draft_id
from onepage.services.draft_store import DELETED_MARKER, DraftStore

from conftest import SAMPLE_HTML


def _db_down():
    return OperationalError("INSERT", {}, Exception("database is locked"))


class TestDraftStore:

    def test_put_and_get(self, draft_store, site_worker):
        draft_store.put("d1", SAMPLE_HTML)
        assert draft_store.get("d1") == SAMPLE_HTML
        assert db.session.get(Draft, "d1").html == SAMPLE_HTML
        assert site_worker.calls == []

    def test_missing_everywhere(self, draft_store):
        assert draft_store.get("nope") is None

    def test_get_falls_back_to_worker(self, draft_store, site_worker):
        site_worker.html["_drafts/d2"] = SAMPLE_HTML
        assert draft_store.get("d2") == SAMPLE_HTML

    def test_deleted_marker_reads_as_missing(self, draft_store, site_worker):
        site_worker.html["_drafts/d3"] = DELETED_MARKER
        assert draft_store.get("d3") is None

    def test_put_falls_back_to_worker(self, draft_store, site_worker):
        with patch.object(db.session, "commit", side_effect=_db_down()):
            draft_store.put("d4", SAMPLE_HTML)
        assert site_worker.html["_drafts/d4"] == SAMPLE_HTML
        assert draft_store.get("d4") == SAMPLE_HTML

    def test_put_without_fallback_raises(self):
        store = DraftStore(site_worker=None)
        with patch.object(db.session, "commit", side_effect=_db_down()):
            with pytest.raises(UpstreamTransportError):
                store.put("d5", SAMPLE_HTML)

    def test_delete(self, draft_store, site_worker):
        draft_store.put("d6", SAMPLE_HTML)
        draft_store.delete("d6")
        assert db.session.get(Draft, "d6") is None
        assert site_worker.calls == []

    def test_delete_worker_draft_overwrites_with_marker(self, draft_store, site_worker):
        site_worker.html["_drafts/d7"] = SAMPLE_HTML
        draft_store.delete("d7")
        assert site_worker.html["_drafts/d7"] == DELETED_MARKER
        assert draft_store.get("d7") is None

    def test_delete_never_raises(self, draft_store, site_worker):
        site_worker.fail_with = UpstreamTransportError()
        draft_store.delete("d8")

    def test_purge_older_than(self, draft_store):
        now = datetime.now(timezone.utc)
        db.session.add(Draft(draft_id="old", html=SAMPLE_HTML, created_at=now - timedelta(hours=30)))
        db.session.add(Draft(draft_id="new", html=SAMPLE_HTML, created_at=now))
        db.session.commit()

        assert draft_store.purge_older_than(24) == 1
        assert draft_store.get("new") == SAMPLE_HTML
        assert db.session.get(Draft, "old") is None

    def test_draft_ids_are_unique(self):
        assert len({new_draft_id() for _ in range(100)}) == 100
