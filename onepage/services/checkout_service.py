"""Checkout service — turn a generated page into a Stripe Checkout Session.

Responsible for:
- Validating the form + html before anything external happens
- Parking the html in the draft store (BEFORE the session exists, so the
  webhook can always find it)
- Creating the subscription Checkout Session: one-time setup fee plus a
  recurring monthly fee
- Attaching everything the webhook needs to rebuild the site as session
  metadata — the webhook never sees the original request
"""

import logging

import stripe
from flask import current_app

from onepage.errors import UpstreamTransportError, ValidationError
from onepage.extensions import db
from onepage.models.draft import new_draft_id
from onepage.models.site import Site
from onepage.services.site_form import SiteFormData

logger = logging.getLogger(__name__)

# Stripe caps metadata values at 500 characters.
METADATA_VALUE_LIMIT = 500

UTM_KEYS = ("utm_source", "utm_medium", "utm_campaign", "utm_content", "utm_term")


def build_checkout_metadata(form, draft_id, utm=None, session_id=None):
    """Session-level metadata the publish webhook reads back.

    Every value is cut to METADATA_VALUE_LIMIT; description is the only
    form field that can normally exceed it.
    """
    metadata = {
        "draftId": draft_id,
        "subdomain": form.subdomain,
        "siteName": form.site_name,
        "email": form.email,
        "colorTheme": form.color_theme,
        "catchphrase": form.catchphrase,
        "contactInfo": form.contact_info,
        "description": form.description,
    }
    for key in UTM_KEYS:
        value = (utm or {}).get(key)
        if value:
            metadata[key] = str(value)
    if session_id:
        metadata["session_id"] = str(session_id)
    return {key: value[:METADATA_VALUE_LIMIT] for key, value in metadata.items()}


def build_line_items(form, app_config):
    """Setup fee (one-time) + monthly fee (recurring), priced inline."""
    currency = app_config["CURRENCY"]
    return [
        {
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": "OnePage-Flash setup fee",
                    "description": f"Website build for \"{form.site_name}\"",
                },
                "unit_amount": app_config["INITIAL_FEE"],
            },
            "quantity": 1,
        },
        {
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": "OnePage-Flash monthly fee",
                    "description": "Website hosting and upkeep",
                },
                "unit_amount": app_config["MONTHLY_FEE"],
                "recurring": {"interval": "month"},
            },
            "quantity": 1,
        },
    ]


def create_checkout_session(form_data, html, draft_store, utm=None, session_id=None):
    """Validate, store the draft, and create the Checkout Session.

    Args:
        form_data:  camelCase dict from the browser.
        html:       the generated page the customer is paying for.
        draft_store: DraftStore collaborator.
        utm:        optional {utm_source, ...} attribution dict.
        session_id: optional client analytics session id.

    Returns the Stripe checkout session URL.
    Raises ValidationError (nothing stored, Stripe not called),
    UpstreamTransportError on Stripe connectivity problems, and lets other
    stripe.StripeError subclasses propagate.
    """
    if not isinstance(html, str) or not html.strip():
        raise ValidationError("html is required")
    form = SiteFormData.from_dict(form_data)
    if utm is not None and not isinstance(utm, dict):
        raise ValidationError("utm must be an object")

    config = current_app.config
    app_base_url = config["APP_BASE_URL"]

    # --- Draft first: the webhook must always find it ---
    draft_id = new_draft_id()
    draft_store.put(draft_id, html)
    logger.info(f"Draft saved for {form.subdomain}: {draft_id}")

    try:
        session = stripe.checkout.Session.create(
            api_key=config["STRIPE_SECRET_KEY"],
            mode="subscription",
            payment_method_types=["card"],
            line_items=build_line_items(form, config),
            success_url=f"{app_base_url}/complete?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{app_base_url}/create",
            customer_email=form.email,
            metadata=build_checkout_metadata(form, draft_id, utm, session_id),
        )
    except (stripe.APIConnectionError, stripe.RateLimitError) as e:
        logger.error(f"Stripe unreachable creating checkout for {form.subdomain}: {e}")
        raise UpstreamTransportError() from e

    logger.info(f"Checkout session created: {session.id} ({form.subdomain})")
    return session.url


def get_checkout_site_status(session_id, site_worker):
    """Report whether the site bought in ``session_id`` is live yet.

    Polled by the completion page. Returns a dict with status
    "complete" or "pending".
    """
    if not session_id:
        raise ValidationError("session_id is required")

    try:
        session = stripe.checkout.Session.retrieve(
            session_id, api_key=current_app.config["STRIPE_SECRET_KEY"]
        )
    except (stripe.APIConnectionError, stripe.RateLimitError) as e:
        raise UpstreamTransportError() from e

    metadata = session.get("metadata") or {}
    subdomain = metadata.get("subdomain")
    if not subdomain:
        return {"status": "pending", "message": "Waiting for processing..."}

    site = db.session.get(Site, subdomain)
    if site is None:
        return {
            "status": "pending",
            "subdomain": subdomain,
            "message": "Site is being published...",
        }

    return {
        "status": "complete",
        "subdomain": subdomain,
        "publicUrl": site_worker.public_url(subdomain),
        "siteName": site.site_name,
    }
