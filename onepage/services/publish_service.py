"""Publish service — promote a paid draft to a live Site, exactly once.

States:
    Draft           html in the draft store, no owner
    PaymentPending  checkout session exists, metadata carries draftId
    Published       Site row exists, draft consumed (terminal)

There is no way back: an unpaid draft just stays behind as garbage until
`flask purge-drafts` reclaims it.

The PaymentPending → Published transition runs from the Stripe
checkout.session.completed webhook, which Stripe delivers at least once.
Idempotency is keyed by subdomain (the Site primary key) and draftId:

1. A Site for the subdomain/draft already exists → no-op success.
2. The Site row is inserted and flushed BEFORE the worker upload. A
   concurrent delivery blocks on the primary key until the first commits,
   then fails with IntegrityError, which is also treated as success.
3. If the worker upload fails, the insert is rolled back and the error
   propagates so the event is not recorded and Stripe redelivers.
"""

import logging
import secrets

from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash

from onepage.errors import DraftNotFound
from onepage.extensions import db
from onepage.models.site import Site
from onepage.models.subscription import Subscription
from onepage.services.tracking_service import record_event_safely

logger = logging.getLogger(__name__)

PUBLISHED = "published"
ALREADY_PUBLISHED = "already_published"
IGNORED = "ignored"

FORM_FIELDS = ("siteName", "catchphrase", "description", "contactInfo", "colorTheme")


def generate_site_password():
    """Random edit password handed to the customer once, by email."""
    return secrets.token_urlsafe(9)  # 12 chars


def _object_id(value):
    """Stripe expands some fields into objects; we only want the id."""
    if isinstance(value, dict):
        return value.get("id")
    return value


def find_published_site(subdomain, draft_id):
    site = db.session.get(Site, subdomain)
    if site is None and draft_id:
        site = Site.query.filter_by(draft_id=draft_id).first()
    return site


def publish_checkout_session(session, draft_store, site_worker):
    """Handle a completed checkout session.

    Every input comes from the session payload (metadata, customer,
    subscription) — never from request context.

    Returns PUBLISHED, ALREADY_PUBLISHED or IGNORED.
    Raises DraftNotFound (retryable) if the draft is gone, and lets
    worker/transport errors propagate after rolling back.
    """
    metadata = session.get("metadata") or {}
    draft_id = metadata.get("draftId")
    subdomain = metadata.get("subdomain")

    if not draft_id or not subdomain:
        logger.warning(
            f"checkout.session.completed {session.get('id')} missing draftId or subdomain"
        )
        return IGNORED

    # --- Idempotency check ---
    existing = find_published_site(subdomain, draft_id)
    if existing is not None:
        if existing.draft_id != draft_id:
            # Someone else's paid site already holds this subdomain.
            logger.error(
                f"Subdomain {subdomain} already published from draft "
                f"{existing.draft_id}; session {session.get('id')} needs manual follow-up"
            )
        else:
            logger.info(f"Site {subdomain} already published, skipping")
        return ALREADY_PUBLISHED

    # --- Fetch the draft ---
    html = draft_store.get(draft_id)
    if html is None:
        logger.error(f"Draft not found for {subdomain}: {draft_id}")
        raise DraftNotFound()

    customer_details = session.get("customer_details") or {}
    email = customer_details.get("email") or metadata.get("email", "")
    form_data = {field: metadata.get(field, "") for field in FORM_FIELDS}
    form_data["colorTheme"] = form_data["colorTheme"] or "simple"
    form_data["email"] = email
    form_data["subdomain"] = subdomain

    stripe_customer_id = _object_id(session.get("customer"))
    stripe_subscription_id = _object_id(session.get("subscription"))
    password = generate_site_password()

    site = Site(
        subdomain=subdomain,
        draft_id=draft_id,
        email=email,
        site_name=form_data["siteName"],
        color_theme=form_data["colorTheme"],
        form_data=form_data,
        html=html,
        password_hash=generate_password_hash(password),
        stripe_customer_id=stripe_customer_id,
        stripe_checkout_session_id=session.get("id"),
    )
    db.session.add(site)
    if stripe_subscription_id:
        db.session.add(Subscription(
            site_subdomain=subdomain,
            stripe_subscription_id=stripe_subscription_id,
            stripe_customer_id=stripe_customer_id,
            status="active",
        ))

    # --- Claim the subdomain (first writer wins) ---
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        logger.info(f"Concurrent publish for {subdomain} won the race, skipping")
        return ALREADY_PUBLISHED

    # --- Upload to the worker, then commit ---
    try:
        site_worker.publish(
            subdomain, html, form_data, email, password=password
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info(f"Concurrent publish for {subdomain} committed first, skipping")
        return ALREADY_PUBLISHED
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Site published: {subdomain} (draft {draft_id})")

    # --- Best-effort follow-ups ---
    draft_store.delete(draft_id)
    _send_published_email(site, password, site_worker)
    record_event_safely(
        "subscribed",
        session_id=metadata.get("session_id"),
        site_subdomain=subdomain,
        utm={key: metadata.get(key) for key in metadata if key.startswith("utm_")},
    )

    return PUBLISHED


def _send_published_email(site, password, site_worker):
    """Send the customer their public URL and edit credentials.

    Never lets an email failure break the publish flow.
    """
    if not site.email:
        return
    try:
        from onepage.services.email_service import send_email

        app_base_url = current_app.config["APP_BASE_URL"]
        send_email(
            to=site.email,
            subject=f"Your site is live — {site.site_name}",
            template="emails/site_published.html",
            context={
                "site_name": site.site_name,
                "public_url": site_worker.public_url(site.subdomain),
                "edit_url": f"{app_base_url}/edit?subdomain={site.subdomain}",
                "subdomain": site.subdomain,
                "password": password,
            },
        )
        logger.info(f"Published email sent to {site.email} for {site.subdomain}")
    except Exception as e:
        logger.error(f"Failed to send published email for {site.subdomain}: {e}")
