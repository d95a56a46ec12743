"""Stripe service — webhook verification and event dispatch.

Responsible for:
- Verifying webhook signatures
- Idempotency via the opf_stripe_events table
- Dispatching to the publish and subscription handlers
- Owning the commit for every handler

A handler failure rolls back, leaves the event unrecorded and reports
failure, so the endpoint answers 500 and Stripe redelivers later.
"""

import logging

import stripe
from flask import current_app
from sqlalchemy.exc import IntegrityError

from onepage.errors import PipelineError
from onepage.extensions import db
from onepage.models.stripe_event import StripeEvent
from onepage.services import publish_service, subscription_service

logger = logging.getLogger(__name__)


def verify_webhook_signature(payload, sig_header):
    """Verify Stripe webhook signature and construct the event.

    Returns the verified Stripe event object.
    Raises stripe.SignatureVerificationError on invalid signature.
    """
    webhook_secret = current_app.config["STRIPE_WEBHOOK_SECRET"]
    return stripe.Webhook.construct_event(payload, sig_header, webhook_secret)


# ──────────────────────────────────────────────
# Event Handlers
# ──────────────────────────────────────────────

def _handle_checkout_completed(event, services):
    session = event["data"]["object"]
    return publish_service.publish_checkout_session(
        session, services.draft_store, services.site_worker
    )


def _handle_subscription_updated(event, services):
    subscription_service.sync_subscription(event["data"]["object"])
    return "processed"


def _handle_subscription_deleted(event, services):
    subscription_service.cancel_subscription(
        event["data"]["object"], services.site_worker
    )
    return "processed"


def _handle_payment_succeeded(event, services):
    subscription_service.record_payment_succeeded(
        event["data"]["object"], services.site_worker
    )
    return "processed"


def _handle_payment_failed(event, services):
    subscription_service.record_payment_failed(event["data"]["object"])
    return "processed"


HANDLERS = {
    "checkout.session.completed": _handle_checkout_completed,
    "customer.subscription.updated": _handle_subscription_updated,
    "customer.subscription.deleted": _handle_subscription_deleted,
    "invoice.payment_succeeded": _handle_payment_succeeded,
    "invoice.payment_failed": _handle_payment_failed,
}


def handle_webhook_event(event, services):
    """Process a verified Stripe webhook event.

    Idempotency: checks opf_stripe_events before processing.
    If the event was already processed, returns immediately.

    Returns (success: bool, message: str).
    """
    event_id = event["id"]
    event_type = event["type"]

    logger.info(f"Webhook event received: {event_type} ({event_id})")

    # --- Idempotency check ---
    existing = StripeEvent.query.filter_by(stripe_event_id=event_id).first()
    if existing:
        logger.info(f"Duplicate webhook event {event_id}, skipping")
        return True, "already_processed"

    # --- Route to handler ---
    message = "processed"
    handler = HANDLERS.get(event_type)
    if handler:
        try:
            message = handler(event, services)
        except PipelineError as e:
            db.session.rollback()
            logger.error(f"Error handling {event_type} ({event_id}): {e.message}", exc_info=True)
            return False, e.message
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error handling {event_type} ({event_id}): {e}", exc_info=True)
            return False, "processing_failed"
    else:
        logger.info(f"Unhandled event type: {event_type}")

    # --- Record event for idempotency ---
    db.session.add(StripeEvent(stripe_event_id=event_id, event_type=event_type))
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent delivery of the same event recorded it first.
        db.session.rollback()
        return True, "already_processed"

    return True, message
