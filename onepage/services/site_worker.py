"""Site worker client — the edge worker that serves published sites.

The worker stores each site's served HTML and owns the edit credentials.
Every call is a JSON POST carrying the shared UPLOAD_SECRET.

Endpoints:
  POST /_api/publish      — store html + metadata, set the site password
  POST /_api/verify       — check subdomain + password, return site data
  POST /_api/update-html  — replace the served html (also used for drafts)
  POST /_api/get-html     — read the served html
"""

import logging

import requests

from onepage.errors import AuthorityError, UpstreamTransportError

logger = logging.getLogger(__name__)


def _error_message(resp, default):
    """Pull {"error": ...} out of a worker response, if there is one."""
    try:
        data = resp.json()
    except ValueError:
        return default
    if isinstance(data, dict) and data.get("error"):
        return data["error"]
    return default


class SiteWorkerClient:

    def __init__(self, worker_url, upload_secret, site_domain="oneflash.net",
                 timeout=30, session=None):
        if not worker_url or not upload_secret:
            raise ValueError("Missing environment variables: WORKER_URL, UPLOAD_SECRET")
        self.worker_url = worker_url.rstrip("/")
        self.upload_secret = upload_secret
        self.site_domain = site_domain
        self.timeout = timeout
        self.session = session or requests.Session()

    # ──────────────────────────────────────────────
    # Transport
    # ──────────────────────────────────────────────

    def _post(self, endpoint, body):
        payload = dict(body, secret=self.upload_secret)
        try:
            return self.session.post(
                f"{self.worker_url}{endpoint}",
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Worker request {endpoint} failed: {e}")
            raise UpstreamTransportError() from e

    def _check(self, resp, endpoint, default_error):
        if resp.status_code >= 500 or resp.status_code == 429:
            logger.error(f"Worker {endpoint} returned {resp.status_code}")
            raise UpstreamTransportError()
        if not resp.ok:
            raise AuthorityError(resp.status_code, _error_message(resp, default_error))

    # ──────────────────────────────────────────────
    # API
    # ──────────────────────────────────────────────

    def publish(self, subdomain, html, form_data, email, password=None):
        """Upload a site. Returns the worker's {url, subdomain, password?}."""
        resp = self._post("/_api/publish", {
            "subdomain": subdomain,
            "html": html,
            "formData": form_data,
            "email": email,
            "password": password,
        })
        self._check(resp, "/_api/publish", "Worker upload failed")
        logger.info(f"Worker published site: {subdomain}")
        return resp.json()

    def verify(self, subdomain, password):
        """Authenticate an edit session.

        Returns {subdomain, email, formData, html}. Raises AuthorityError
        with the worker's own status and message on rejection.
        """
        resp = self._post("/_api/verify", {
            "subdomain": subdomain,
            "password": password,
        })
        # Any non-2xx, 5xx included, is passed through as the worker said it.
        if not resp.ok:
            raise AuthorityError(
                resp.status_code, _error_message(resp, "Verification failed")
            )
        return resp.json()

    def update_html(self, key, html):
        resp = self._post("/_api/update-html", {"subdomain": key, "html": html})
        self._check(resp, "/_api/update-html", "Worker update failed")

    def get_html(self, key):
        """Return the stored html for ``key``, or None if the worker has none."""
        resp = self._post("/_api/get-html", {"subdomain": key})
        if resp.status_code == 404:
            return None
        self._check(resp, "/_api/get-html", "Worker read failed")
        return resp.json().get("html")

    def public_url(self, subdomain):
        return f"https://{subdomain}.{self.site_domain}"
