"""Builder blueprint — /api/*

The create-a-site flow: moderate + generate a draft page, start checkout,
and poll until the paid site is live.

Route Map:
  POST /api/generate                — moderation, then HTML generation
  POST /api/create-checkout-session — store draft, create Stripe session
  GET  /api/check-site-status       — has the webhook published it yet?
"""

import logging

from flask import Blueprint, jsonify, request

from onepage.errors import ValidationError
from onepage.extensions import limiter, require_service
from onepage.prompts.refiner import validate_revision_instruction
from onepage.services.checkout_service import (
    create_checkout_session,
    get_checkout_site_status,
)
from onepage.services.generation_service import generate_site_html
from onepage.services.site_form import SiteFormData

builder_bp = Blueprint("builder", __name__, url_prefix="/api")

logger = logging.getLogger(__name__)


def json_body():
    """Return the request's JSON object or raise ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid request.")
    return data


@builder_bp.route("/generate", methods=["POST"])
@limiter.limit("20 per hour")
def generate():
    """
    Moderate the form and generate the page.

    Expects: { formData, instruction (optional) }
    Returns: { html, moderation: {isSafe, reason} }
    """
    data = json_body()
    form = SiteFormData.from_dict(data.get("formData"))

    instruction = data.get("instruction")
    if instruction:
        instruction = validate_revision_instruction(instruction)

    model_client = require_service("model_client")
    html, moderation = generate_site_html(form, model_client, instruction=instruction)

    return jsonify(html=html, moderation=moderation.to_dict()), 200


@builder_bp.route("/create-checkout-session", methods=["POST"])
@limiter.limit("10 per hour")
def create_checkout():
    """
    Park the generated page as a draft and start Stripe Checkout.

    Expects: { formData, html, utm (optional), sessionId (optional) }
    Returns: { url }
    """
    data = json_body()
    url = create_checkout_session(
        data.get("formData"),
        data.get("html"),
        require_service("draft_store"),
        utm=data.get("utm"),
        session_id=data.get("sessionId"),
    )
    return jsonify(url=url), 200


@builder_bp.route("/check-site-status", methods=["GET"])
def check_site_status():
    """Polled by the completion page with ?session_id=cs_..."""
    result = get_checkout_site_status(
        request.args.get("session_id"), require_service("site_worker")
    )
    return jsonify(result), 200
