"""Tests for checkout creation and site-status polling.

Covers:
- Draft stored BEFORE the Stripe session is created
- Two line items: one-time setup fee + monthly recurring fee
- Session metadata (draftId, form fields, truncated description, UTM)
- Validation failures never touch the draft store or Stripe
- Stripe failures
- GET /api/check-site-status
"""

import json
from unittest.mock import MagicMock, patch

import stripe

from onepage.extensions import db
from onepage.models.draft import Draft

from conftest import SAMPLE_HTML

CREATE = "onepage.services.checkout_service.stripe.checkout.Session.create"
RETRIEVE = "onepage.services.checkout_service.stripe.checkout.Session.retrieve"


def _fake_session(url="https://checkout.stripe.com/c/pay/cs_test_123"):
    session = MagicMock()
    session.id = "cs_test_123"
    session.url = url
    return session


def _post(client, body):
    return client.post(
        "/api/create-checkout-session",
        data=json.dumps(body),
        content_type="application/json",
    )


class TestCreateCheckoutSession:

    @patch(CREATE)
    def test_returns_checkout_url(self, mock_create, client, form_data):
        mock_create.return_value = _fake_session()

        resp = _post(client, {"formData": form_data, "html": SAMPLE_HTML})
        assert resp.status_code == 200
        assert resp.get_json() == {"url": "https://checkout.stripe.com/c/pay/cs_test_123"}

    @patch(CREATE)
    def test_draft_stored_before_session(self, mock_create, client, form_data):
        drafts_at_create = []

        def create(**kwargs):
            drafts_at_create.append(db.session.get(Draft, kwargs["metadata"]["draftId"]))
            return _fake_session()

        mock_create.side_effect = create

        resp = _post(client, {"formData": form_data, "html": SAMPLE_HTML})
        assert resp.status_code == 200
        assert drafts_at_create[0] is not None
        assert drafts_at_create[0].html == SAMPLE_HTML

    @patch(CREATE)
    def test_session_shape(self, mock_create, client, form_data, app):
        mock_create.return_value = _fake_session()
        _post(client, {"formData": form_data, "html": SAMPLE_HTML})

        kwargs = mock_create.call_args.kwargs
        assert kwargs["mode"] == "subscription"
        assert kwargs["customer_email"] == "a@b.com"
        assert kwargs["api_key"] == app.config["STRIPE_SECRET_KEY"]
        assert kwargs["success_url"] == (
            "http://localhost:3000/complete?session_id={CHECKOUT_SESSION_ID}"
        )

        setup, monthly = kwargs["line_items"]
        assert setup["price_data"]["unit_amount"] == 2980
        assert "recurring" not in setup["price_data"]
        assert monthly["price_data"]["unit_amount"] == 380
        assert monthly["price_data"]["recurring"] == {"interval": "month"}
        assert setup["price_data"]["currency"] == "jpy"

    @patch(CREATE)
    def test_metadata(self, mock_create, client, form_data):
        mock_create.return_value = _fake_session()
        form_data["description"] = "w" * 600

        _post(client, {
            "formData": form_data,
            "html": SAMPLE_HTML,
            "utm": {"utm_source": "google", "utm_campaign": "spring", "utm_term": ""},
            "sessionId": "sess-42",
        })

        metadata = mock_create.call_args.kwargs["metadata"]
        draft = Draft.query.one()
        assert metadata["draftId"] == draft.draft_id
        assert metadata["subdomain"] == "acme"
        assert metadata["siteName"] == "Acme"
        assert metadata["email"] == "a@b.com"
        assert metadata["colorTheme"] == "simple"
        assert metadata["catchphrase"] == "Great"
        assert metadata["contactInfo"] == "555-1234"
        assert metadata["description"] == "w" * 500
        assert metadata["utm_source"] == "google"
        assert metadata["utm_campaign"] == "spring"
        assert "utm_term" not in metadata
        assert metadata["session_id"] == "sess-42"

    @patch(CREATE)
    def test_every_metadata_value_within_stripe_limit(self, mock_create, client, form_data):
        mock_create.return_value = _fake_session()
        form_data["contactInfo"] = "c" * 500
        form_data["description"] = "w" * 3000

        resp = _post(client, {
            "formData": form_data,
            "html": SAMPLE_HTML,
            "utm": {"utm_content": "u" * 800},
            "sessionId": "s" * 800,
        })
        assert resp.status_code == 200

        metadata = mock_create.call_args.kwargs["metadata"]
        assert all(len(value) <= 500 for value in metadata.values())
        assert metadata["contactInfo"] == "c" * 500
        assert metadata["utm_content"] == "u" * 500
        assert metadata["session_id"] == "s" * 500

    @patch(CREATE)
    def test_each_checkout_gets_a_new_draft(self, mock_create, client, form_data):
        mock_create.return_value = _fake_session()
        _post(client, {"formData": form_data, "html": SAMPLE_HTML})
        _post(client, {"formData": form_data, "html": SAMPLE_HTML})

        ids = [c.kwargs["metadata"]["draftId"] for c in mock_create.call_args_list]
        assert len(set(ids)) == 2
        assert Draft.query.count() == 2


class TestCheckoutValidation:

    @patch(CREATE)
    def test_missing_html(self, mock_create, client, form_data):
        resp = _post(client, {"formData": form_data})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "html is required"
        mock_create.assert_not_called()
        assert Draft.query.count() == 0

    @patch(CREATE)
    def test_invalid_theme(self, mock_create, client, form_data):
        form_data["colorTheme"] = "rainbow"
        resp = _post(client, {"formData": form_data, "html": SAMPLE_HTML})
        assert resp.status_code == 400
        mock_create.assert_not_called()
        assert Draft.query.count() == 0

    @patch(CREATE)
    def test_blank_contact_info(self, mock_create, client, form_data):
        form_data["contactInfo"] = "  "
        resp = _post(client, {"formData": form_data, "html": SAMPLE_HTML})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "contactInfo is required"
        mock_create.assert_not_called()

    @patch(CREATE)
    def test_long_site_name_rejected_before_draft(self, mock_create, client, form_data):
        form_data["siteName"] = "A" * 600
        resp = _post(client, {"formData": form_data, "html": SAMPLE_HTML})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "siteName must be at most 100 characters"
        mock_create.assert_not_called()
        assert Draft.query.count() == 0

    @patch(CREATE)
    def test_utm_must_be_object(self, mock_create, client, form_data):
        resp = _post(client, {"formData": form_data, "html": SAMPLE_HTML, "utm": "google"})
        assert resp.status_code == 400
        mock_create.assert_not_called()


class TestCheckoutStripeFailures:

    @patch(CREATE)
    def test_connection_error(self, mock_create, client, form_data):
        mock_create.side_effect = stripe.APIConnectionError("network down")
        resp = _post(client, {"formData": form_data, "html": SAMPLE_HTML})
        assert resp.status_code == 503

    @patch(CREATE)
    def test_other_stripe_error_is_generic_500(self, mock_create, client, form_data):
        mock_create.side_effect = stripe.StripeError("No such price: price_xyz")
        resp = _post(client, {"formData": form_data, "html": SAMPLE_HTML})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}


class TestCheckSiteStatus:

    @patch(RETRIEVE)
    def test_pending_until_published(self, mock_retrieve, client):
        mock_retrieve.return_value = {"metadata": {"subdomain": "acme"}}
        resp = client.get("/api/check-site-status?session_id=cs_test_123")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "pending"

    @patch(RETRIEVE)
    def test_complete_when_site_exists(self, mock_retrieve, client, published_site):
        mock_retrieve.return_value = {"metadata": {"subdomain": "acme"}}
        resp = client.get("/api/check-site-status?session_id=cs_test_123")

        data = resp.get_json()
        assert data["status"] == "complete"
        assert data["publicUrl"] == "https://acme.oneflash.net"
        assert data["siteName"] == "Acme"
        assert mock_retrieve.call_args.args[0] == "cs_test_123"

    def test_session_id_required(self, client):
        resp = client.get("/api/check-site-status")
        assert resp.status_code == 400
