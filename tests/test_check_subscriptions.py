"""Tests for subscription reconciliation and `flask check-subscriptions`.

Covers:
- Status synced from Stripe, site taken offline when the subscription ended
- Inactive site served again once the subscription is active
- Subscription missing in Stripe treated as canceled
- Sites without a subscription skipped
- One failing site does not stop the batch
"""

from unittest.mock import patch

import stripe

from onepage.errors import UpstreamTransportError
from onepage.extensions import db
from onepage.models.site import Site
from onepage.models.subscription import Subscription
from onepage.services.subscription_service import reconcile_subscriptions

from conftest import SAMPLE_HTML

RETRIEVE = "onepage.services.subscription_service.stripe.Subscription.retrieve"


def _add_subscription(subdomain="acme", sub_id="sub_123", status="active"):
    db.session.add(Subscription(
        site_subdomain=subdomain,
        stripe_subscription_id=sub_id,
        stripe_customer_id="cus_123",
        status=status,
    ))
    db.session.commit()


def _add_site(subdomain, is_active=True):
    db.session.add(Site(
        subdomain=subdomain,
        draft_id=f"draft-{subdomain}",
        email="x@y.com",
        site_name=subdomain.title(),
        color_theme="simple",
        form_data={},
        html=SAMPLE_HTML,
        password_hash="x",
        is_active=is_active,
    ))
    db.session.commit()


def _stripe_sub(sub_id="sub_123", status="active"):
    return {
        "id": sub_id,
        "status": status,
        "cancel_at_period_end": False,
        "cancel_at": None,
        "current_period_start": 1700000000,
        "current_period_end": 1702592000,
    }


class TestReconcileSubscriptions:

    @patch(RETRIEVE)
    def test_canceled_site_taken_offline(self, mock_retrieve, published_site, site_worker):
        _add_subscription()
        mock_retrieve.return_value = _stripe_sub(status="canceled")

        result = reconcile_subscriptions(site_worker, "sk_test_fake")

        assert result["deactivated"] == ["acme"]
        assert result["updated"] == ["acme: active -> canceled"]
        assert mock_retrieve.call_args.args[0] == "sub_123"
        assert mock_retrieve.call_args.kwargs["api_key"] == "sk_test_fake"

        site = db.session.get(Site, "acme")
        sub = Subscription.query.one()
        assert site.is_active is False
        assert site.html == SAMPLE_HTML
        assert sub.status == "canceled"
        assert sub.canceled_at is not None
        assert "currently unavailable" in site_worker.html["acme"]

    @patch(RETRIEVE)
    def test_recovered_site_reactivated(self, mock_retrieve, published_site, site_worker):
        _add_subscription(status="unpaid")
        published_site.is_active = False
        db.session.commit()
        site_worker.html["acme"] = "<!DOCTYPE html><html>unavailable</html>"
        mock_retrieve.return_value = _stripe_sub(status="active")

        result = reconcile_subscriptions(site_worker, "sk_test_fake")

        assert result["reactivated"] == ["acme"]
        assert db.session.get(Site, "acme").is_active is True
        assert Subscription.query.one().status == "active"
        assert site_worker.html["acme"] == SAMPLE_HTML

    @patch(RETRIEVE)
    def test_past_due_stays_online(self, mock_retrieve, published_site, site_worker):
        _add_subscription()
        mock_retrieve.return_value = _stripe_sub(status="past_due")

        result = reconcile_subscriptions(site_worker, "sk_test_fake")

        assert result["deactivated"] == []
        assert result["updated"] == ["acme: active -> past_due"]
        assert db.session.get(Site, "acme").is_active is True
        assert site_worker.calls == []

    @patch(RETRIEVE)
    def test_in_sync_site_untouched(self, mock_retrieve, published_site, site_worker):
        _add_subscription()
        mock_retrieve.return_value = _stripe_sub(status="active")

        result = reconcile_subscriptions(site_worker, "sk_test_fake")

        assert result["checked"] == 1
        assert result["updated"] == []
        assert site_worker.calls == []

    @patch(RETRIEVE)
    def test_missing_in_stripe_treated_as_canceled(self, mock_retrieve, published_site,
                                                   site_worker):
        _add_subscription()
        mock_retrieve.side_effect = stripe.InvalidRequestError(
            "No such subscription: 'sub_123'", "id", http_status=404
        )

        result = reconcile_subscriptions(site_worker, "sk_test_fake")

        assert result["deactivated"] == ["acme"]
        assert result["errors"] == []
        assert db.session.get(Site, "acme").is_active is False
        assert Subscription.query.one().status == "canceled"

    @patch(RETRIEVE)
    def test_site_without_subscription_skipped(self, mock_retrieve, published_site,
                                               site_worker):
        result = reconcile_subscriptions(site_worker, "sk_test_fake")

        assert result["checked"] == 1
        assert result["skipped"] == ["acme"]
        mock_retrieve.assert_not_called()

    @patch(RETRIEVE)
    def test_failure_does_not_stop_batch(self, mock_retrieve, published_site, site_worker):
        _add_subscription()
        _add_site("beta", is_active=False)
        _add_subscription(subdomain="beta", sub_id="sub_456", status="unpaid")
        mock_retrieve.side_effect = [
            _stripe_sub(status="canceled"),
            _stripe_sub(sub_id="sub_456", status="active"),
        ]
        site_worker.fail_with = UpstreamTransportError()

        result = reconcile_subscriptions(site_worker, "sk_test_fake")

        assert len(result["errors"]) == 1
        assert result["errors"][0].startswith("acme: ")
        assert result["reactivated"] == ["beta"]

        # The failed site is rolled back as a whole
        assert db.session.get(Site, "acme").is_active is True
        assert Subscription.query.filter_by(site_subdomain="acme").one().status == "active"
        assert db.session.get(Site, "beta").is_active is True


class TestCheckSubscriptionsCommand:

    @patch(RETRIEVE)
    def test_reports_summary(self, mock_retrieve, app, published_site, site_worker):
        _add_subscription()
        mock_retrieve.return_value = _stripe_sub(status="canceled")

        result = app.test_cli_runner().invoke(args=["check-subscriptions"])

        assert result.exit_code == 0
        assert "deactivated: acme" in result.output
        assert "Checked 1 site(s): 1 deactivated, 0 reactivated, 0 error(s), 0 skipped." in result.output
        assert db.session.get(Site, "acme").is_active is False

    @patch(RETRIEVE)
    def test_requires_stripe_key(self, mock_retrieve, app, published_site):
        app.config["STRIPE_SECRET_KEY"] = None
        try:
            result = app.test_cli_runner().invoke(args=["check-subscriptions"])
        finally:
            app.config["STRIPE_SECRET_KEY"] = "sk_test_fake"

        assert "STRIPE_SECRET_KEY is not set" in result.output
        mock_retrieve.assert_not_called()
