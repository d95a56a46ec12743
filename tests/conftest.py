"""Shared test fixtures for the OnePage-Flash test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, no mail, no limits)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- services: fresh fake model client + fake worker + DraftStore per test
- form_data: the "Acme" form used across the suite
- published_site: a Site row already live on the fake worker
"""

import pytest
from werkzeug.security import generate_password_hash

from onepage import create_app
from onepage.errors import AuthorityError
from onepage.extensions import Services, db as _db
from onepage.models.site import Site
from onepage.services.draft_store import DraftStore

SAMPLE_HTML = (
    "<!DOCTYPE html>\n<html lang=\"en\">\n<head><title>Acme</title></head>\n"
    "<body><h1>Acme</h1><p>Great</p></body>\n</html>"
)

REVISED_HTML = (
    "<!DOCTYPE html>\n<html lang=\"en\">\n<head><title>Acme</title></head>\n"
    "<body><h1 style=\"color: red\">Acme</h1><p>Great</p></body>\n</html>"
)

SAFE_VERDICT = '{"isSafe": true, "reason": "No problematic expressions found"}'


class FakeModelClient:
    """Stands in for GeminiClient.

    Queued replies are returned in order; an exception in the queue is
    raised instead. With an empty queue, moderation says "safe" and text
    generation returns SAMPLE_HTML.
    """

    def __init__(self):
        self.text_replies = []
        self.json_replies = []
        self.calls = []

    def generate_text(self, prompt, temperature=0.7, max_output_tokens=8192):
        self.calls.append(("text", prompt, temperature))
        return self._next(self.text_replies, SAMPLE_HTML)

    def generate_json(self, prompt, temperature=0.1, max_output_tokens=256):
        self.calls.append(("json", prompt, temperature))
        return self._next(self.json_replies, SAFE_VERDICT)

    @staticmethod
    def _next(queue, default):
        if not queue:
            return default
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def kinds(self):
        return [kind for kind, _, _ in self.calls]


class FakeSiteWorker:
    """Stands in for SiteWorkerClient, keeping everything in dicts.

    Set ``fail_with`` to an exception to make the next mutating call raise it.
    """

    def __init__(self):
        self.sites = {}      # subdomain -> {email, formData, password}
        self.html = {}       # key -> served html
        self.calls = []
        self.fail_with = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc

    def publish(self, subdomain, html, form_data, email, password=None):
        self.calls.append(("publish", subdomain))
        self._maybe_fail()
        self.sites[subdomain] = {
            "email": email,
            "formData": form_data,
            "password": password,
        }
        self.html[subdomain] = html
        return {"url": self.public_url(subdomain), "subdomain": subdomain}

    def verify(self, subdomain, password):
        self.calls.append(("verify", subdomain))
        site = self.sites.get(subdomain)
        if site is None:
            raise AuthorityError(404, "Site not found")
        if site["password"] != password:
            raise AuthorityError(401, "Incorrect password")
        return {
            "subdomain": subdomain,
            "email": site["email"],
            "formData": site["formData"],
            "html": self.html.get(subdomain),
        }

    def update_html(self, key, html):
        self.calls.append(("update_html", key))
        self._maybe_fail()
        self.html[key] = html

    def get_html(self, key):
        self.calls.append(("get_html", key))
        return self.html.get(key)

    def public_url(self, subdomain):
        return f"https://{subdomain}.oneflash.net"


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture(autouse=True)
def services(app):
    """Install fresh fake collaborators for every test."""
    worker = FakeSiteWorker()
    fresh = Services(
        model_client=FakeModelClient(),
        site_worker=worker,
        draft_store=DraftStore(site_worker=worker),
    )
    app.extensions["onepage"] = fresh
    return fresh


@pytest.fixture
def model_client(services):
    return services.model_client


@pytest.fixture
def site_worker(services):
    return services.site_worker


@pytest.fixture
def draft_store(services):
    return services.draft_store


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def form_data():
    return {
        "siteName": "Acme",
        "subdomain": "acme",
        "email": "a@b.com",
        "catchphrase": "Great",
        "description": "We sell widgets",
        "contactInfo": "555-1234",
        "colorTheme": "simple",
    }


@pytest.fixture
def published_site(db_session, site_worker, form_data):
    """A live site "acme" with edit password "s3cret-pass"."""
    site = Site(
        subdomain="acme",
        draft_id="draft-acme",
        email="a@b.com",
        site_name="Acme",
        color_theme="simple",
        form_data=form_data,
        html=SAMPLE_HTML,
        password_hash=generate_password_hash("s3cret-pass"),
    )
    _db.session.add(site)
    _db.session.commit()

    site_worker.sites["acme"] = {
        "email": "a@b.com",
        "formData": form_data,
        "password": "s3cret-pass",
    }
    site_worker.html["acme"] = SAMPLE_HTML
    site_worker.calls.clear()
    return site
