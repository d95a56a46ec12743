"""Tests for the app factory: config, collaborators, errors, headers."""

import pytest

from onepage import create_app
from onepage.config import Config
from onepage.services.draft_store import DraftStore
from onepage.services.site_worker import SiteWorkerClient


class TestCreateApp:

    def test_testing_builds_worker_and_store(self):
        app = create_app("testing")
        services = app.extensions["onepage"]
        assert services.model_client is None  # no GEMINI_API_KEY in tests
        assert isinstance(services.site_worker, SiteWorkerClient)
        assert isinstance(services.draft_store, DraftStore)
        assert services.draft_store.site_worker is services.site_worker

    def test_injected_collaborators_are_used(self):
        model, worker = object(), object()
        app = create_app("testing", model_client=model, site_worker=worker)
        services = app.extensions["onepage"]
        assert services.model_client is model
        assert services.site_worker is worker
        assert services.draft_store.site_worker is worker

    def test_production_fails_fast_on_missing_env(self, monkeypatch):
        for name in Config.REQUIRED:
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(RuntimeError) as exc:
            create_app("production")
        assert "GEMINI_API_KEY" in str(exc.value)


class TestErrorResponses:

    def test_unknown_route_is_json(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert "error" in resp.get_json()

    def test_wrong_method_is_json(self, client):
        resp = client.get("/api/generate")
        assert resp.status_code == 405
        assert "error" in resp.get_json()


class TestSecurityHeaders:

    def test_headers_present(self, client):
        resp = client.post("/api/track", json={"eventType": "page_view"})
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert "frame-ancestors 'none'" in resp.headers["Content-Security-Policy"]
