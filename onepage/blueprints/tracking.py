"""Tracking blueprint — POST /api/track

Funnel events from the landing page and form. Answers { ok: true } even
when the insert fails; tracking never surfaces as a user-facing error.
"""

from flask import Blueprint, jsonify, request

from onepage.extensions import limiter
from onepage.services.tracking_service import (
    UTM_FIELDS,
    record_event_safely,
    validate_client_event_type,
)

tracking_bp = Blueprint("tracking", __name__, url_prefix="/api")


def _text(data, key):
    # Non-string values are dropped rather than stored.
    value = data.get(key)
    return value if isinstance(value, str) else None


@tracking_bp.route("/track", methods=["POST"])
@limiter.limit("120 per minute")
def track():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    event_type = validate_client_event_type(data.get("eventType"))

    record_event_safely(
        event_type,
        session_id=_text(data, "sessionId"),
        page_url=_text(data, "pageUrl"),
        referrer=_text(data, "referrer"),
        user_agent=request.headers.get("User-Agent"),
        utm={field: _text(data, field) for field in UTM_FIELDS},
    )
    return jsonify(ok=True), 200
