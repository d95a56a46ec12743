"""Tracking service — conversion funnel events for ad attribution.

Writes are fire-and-forget: a failed insert is logged and dropped, never
raised into the flow that triggered it.
"""

import logging

from onepage.errors import ValidationError
from onepage.extensions import db
from onepage.models.ad_event import AdEvent

logger = logging.getLogger(__name__)

# "subscribed" is recorded by the webhook only, never by the browser.
CLIENT_EVENT_TYPES = {"page_view", "form_start", "checkout_start"}

UTM_FIELDS = ("utm_source", "utm_medium", "utm_campaign", "utm_content", "utm_term")


def validate_client_event_type(event_type):
    if not isinstance(event_type, str) or event_type not in CLIENT_EVENT_TYPES:
        raise ValidationError("Invalid eventType")
    return event_type


def record_event(event_type, session_id=None, site_subdomain=None, page_url=None,
                 referrer=None, user_agent=None, utm=None):
    """Insert one AdEvent and commit."""
    utm = utm or {}
    event = AdEvent(
        event_type=event_type,
        session_id=session_id,
        site_subdomain=site_subdomain,
        page_url=page_url,
        referrer=referrer,
        user_agent=user_agent,
        **{field: utm.get(field) or None for field in UTM_FIELDS},
    )
    db.session.add(event)
    db.session.commit()
    return event


def record_event_safely(event_type, **kwargs):
    """record_event() that logs instead of raising. Returns True on success."""
    try:
        record_event(event_type, **kwargs)
        return True
    except Exception as e:
        db.session.rollback()
        logger.warning(f"Failed to record {event_type} event: {e}")
        return False
