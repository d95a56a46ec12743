"""Subscription service — keep a published site in step with its billing.

Responsible for:
- Syncing opf_subscriptions rows from Stripe subscription/invoice payloads
- Taking a site offline when its subscription ends (the worker serves an
  "unavailable" page; the Site row keeps the real html)
- Bringing it back from the stored html when payment resumes
- Periodic reconciliation against Stripe (``flask check-subscriptions``)

Webhook handlers flush but never commit; the webhook dispatcher owns the
commit. reconcile_subscriptions() commits per site.
"""

import logging
from datetime import datetime, timezone

import stripe
from flask import render_template
from sqlalchemy.exc import SQLAlchemyError

from onepage.errors import PipelineError
from onepage.extensions import db
from onepage.models.site import Site
from onepage.models.subscription import Subscription

logger = logging.getLogger(__name__)

# past_due keeps the site up while Stripe retries the payment.
OFFLINE_STATUSES = {"canceled", "unpaid", "incomplete_expired", "paused"}
ONLINE_STATUSES = {"active", "trialing"}


def _timestamp(ts):
    if ts:
        return datetime.fromtimestamp(ts, tz=timezone.utc)
    return None


def _extract_period(sub_data):
    """Return (current_period_start, current_period_end) as datetimes.

    In newer Stripe API versions the period fields moved from the
    subscription top level to items.data[0]. This helper checks both.
    """
    start = sub_data.get("current_period_start")
    end = sub_data.get("current_period_end")

    if not end:
        items = sub_data.get("items")
        if items and items.get("data"):
            start = items["data"][0].get("current_period_start")
            end = items["data"][0].get("current_period_end")

    return _timestamp(start), _timestamp(end)


def invoice_subscription_id(invoice):
    """The subscription id an invoice belongs to, across API versions."""
    sub = invoice.get("subscription")
    if not sub:
        parent = invoice.get("parent") or {}
        details = parent.get("subscription_details") or {}
        sub = details.get("subscription")
    if isinstance(sub, dict):
        return sub.get("id")
    return sub


def build_unavailable_page(site_name):
    return render_template("sites/unavailable.html", site_name=site_name)


def deactivate_site(site, site_worker):
    """Serve the unavailable page instead of the site. Keeps site.html."""
    site_worker.update_html(site.subdomain, build_unavailable_page(site.site_name))
    site.is_active = False
    db.session.flush()
    logger.info(f"Site deactivated: {site.subdomain}")


def reactivate_site(site, site_worker):
    """Serve the stored html again."""
    site_worker.update_html(site.subdomain, site.html)
    site.is_active = True
    db.session.flush()
    logger.info(f"Site reactivated: {site.subdomain}")


def sync_subscription(sub_data):
    """Handle customer.subscription.updated."""
    stripe_subscription_id = sub_data.get("id")
    sub = Subscription.query.filter_by(
        stripe_subscription_id=stripe_subscription_id
    ).first()
    if not sub:
        logger.info(f"subscription.updated: no local record for {stripe_subscription_id}")
        return None

    period_start, period_end = _extract_period(sub_data)

    # Stripe uses cancel_at_period_end OR cancel_at (a future timestamp)
    # to indicate the subscription is set to cancel. Treat either as cancelling.
    sub.status = sub_data.get("status", sub.status)
    sub.cancel_at_period_end = bool(
        sub_data.get("cancel_at_period_end", False)
        or sub_data.get("cancel_at") is not None
    )
    if period_start:
        sub.current_period_start = period_start
    if period_end:
        sub.current_period_end = period_end

    db.session.flush()
    logger.info(f"Subscription updated: {stripe_subscription_id} → {sub.status}")
    return sub


def cancel_subscription(sub_data, site_worker):
    """Handle customer.subscription.deleted: mark canceled, take site offline."""
    stripe_subscription_id = sub_data.get("id")
    sub = Subscription.query.filter_by(
        stripe_subscription_id=stripe_subscription_id
    ).first()
    if not sub:
        logger.warning(f"subscription.deleted: no local record for {stripe_subscription_id}")
        return None

    sub.status = "canceled"
    sub.cancel_at_period_end = False
    sub.canceled_at = datetime.now(timezone.utc)
    db.session.flush()

    site = db.session.get(Site, sub.site_subdomain)
    if site and site.is_active:
        deactivate_site(site, site_worker)

    logger.info(f"Subscription deleted: {stripe_subscription_id}")
    return sub


def record_payment_succeeded(invoice, site_worker):
    """Handle invoice.payment_succeeded: active again, period refreshed."""
    stripe_subscription_id = invoice_subscription_id(invoice)
    if not stripe_subscription_id:
        return None

    sub = Subscription.query.filter_by(
        stripe_subscription_id=stripe_subscription_id
    ).first()
    if not sub:
        return None

    sub.status = "active"
    lines = invoice.get("lines") or {}
    if lines.get("data"):
        period = lines["data"][0].get("period") or {}
        sub.current_period_start = _timestamp(period.get("start")) or sub.current_period_start
        sub.current_period_end = _timestamp(period.get("end")) or sub.current_period_end
    db.session.flush()

    site = db.session.get(Site, sub.site_subdomain)
    if site and not site.is_active:
        reactivate_site(site, site_worker)

    logger.info(f"Payment succeeded for subscription: {stripe_subscription_id}")
    return sub


def record_payment_failed(invoice):
    """Handle invoice.payment_failed: mark past_due. The site stays up."""
    stripe_subscription_id = invoice_subscription_id(invoice)
    if not stripe_subscription_id:
        return None

    sub = Subscription.query.filter_by(
        stripe_subscription_id=stripe_subscription_id
    ).first()
    if sub and sub.status != "past_due":
        sub.status = "past_due"
        db.session.flush()

    logger.warning(f"Payment failed for subscription: {stripe_subscription_id}")
    return sub


def reconcile_subscriptions(site_worker, api_key):
    """Re-sync every site's subscription from Stripe and fix its visibility.

    Catches what missed webhooks left behind: a site whose subscription
    ended goes offline, an inactive site whose subscription recovered is
    served again. A subscription Stripe no longer knows is treated as
    canceled. Sites without a subscription are skipped.

    Each site commits on its own; a failure is logged and the batch moves on.

    Returns a dict: checked (int) and skipped, updated, deactivated,
    reactivated, errors (lists of strings).
    """
    result = {
        "checked": 0,
        "skipped": [],
        "updated": [],
        "deactivated": [],
        "reactivated": [],
        "errors": [],
    }

    for site in Site.query.order_by(Site.created_at, Site.subdomain).all():
        result["checked"] += 1
        subdomain = site.subdomain
        sub = site.subscriptions.order_by(Subscription.created_at.desc()).first()
        if sub is None:
            result["skipped"].append(subdomain)
            continue

        try:
            _reconcile_site(site, sub, site_worker, api_key, result)
            db.session.commit()
        except (stripe.StripeError, PipelineError, SQLAlchemyError) as e:
            db.session.rollback()
            logger.error(f"Reconcile failed for {subdomain}: {e}")
            result["errors"].append(f"{subdomain}: {e}")

    logger.info(
        f"Subscription check: checked={result['checked']}, "
        f"deactivated={len(result['deactivated'])}, "
        f"reactivated={len(result['reactivated'])}, "
        f"updated={len(result['updated'])}, errors={len(result['errors'])}, "
        f"skipped={len(result['skipped'])}"
    )
    return result


def _reconcile_site(site, sub, site_worker, api_key, result):
    try:
        stripe_sub = stripe.Subscription.retrieve(
            sub.stripe_subscription_id, api_key=api_key
        )
    except stripe.InvalidRequestError as e:
        if e.http_status != 404:
            raise
        logger.warning(
            f"Subscription {sub.stripe_subscription_id} not found in Stripe "
            f"(site: {site.subdomain}), treating as canceled"
        )
        was_active = site.is_active
        previous = sub.status
        cancel_subscription({"id": sub.stripe_subscription_id}, site_worker)
        if previous != "canceled":
            result["updated"].append(f"{site.subdomain}: {previous} -> canceled")
        if was_active:
            result["deactivated"].append(site.subdomain)
        return

    previous = sub.status
    sync_subscription(stripe_sub)
    if sub.status != previous:
        result["updated"].append(f"{site.subdomain}: {previous} -> {sub.status}")
        if sub.status == "canceled" and sub.canceled_at is None:
            sub.canceled_at = datetime.now(timezone.utc)

    if site.is_active and sub.status in OFFLINE_STATUSES:
        deactivate_site(site, site_worker)
        result["deactivated"].append(site.subdomain)
    elif not site.is_active and sub.status in ONLINE_STATUSES:
        reactivate_site(site, site_worker)
        result["reactivated"].append(site.subdomain)
