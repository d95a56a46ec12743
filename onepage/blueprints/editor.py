"""Editor blueprint — /api/verify, /api/revise

Customers come back with their subdomain + password to change the text,
colors or spacing of their live site.
"""

import logging

from flask import Blueprint, jsonify

from onepage.blueprints.builder import json_body
from onepage.extensions import get_services, limiter, require_service
from onepage.services.access_service import verify_access
from onepage.services.refinement_service import revise_site

editor_bp = Blueprint("editor", __name__, url_prefix="/api")

logger = logging.getLogger(__name__)


@editor_bp.route("/verify", methods=["POST"])
@limiter.limit("10 per minute")
def verify():
    """
    Expects: { subdomain, password }
    Returns: { subdomain, email, formData, html } or the worker's error
    """
    data = json_body()
    result = verify_access(
        data.get("subdomain"),
        data.get("password"),
        require_service("site_worker"),
    )
    return jsonify(result), 200


@editor_bp.route("/revise", methods=["POST"])
@limiter.limit("10 per hour")
def revise():
    """
    Expects: { subdomain, password, instruction }
    Returns: { success, html, publicUrl, revisionCount }
    """
    data = json_body()
    require_service("model_client")
    require_service("site_worker")
    result = revise_site(
        data.get("subdomain"),
        data.get("password"),
        data.get("instruction"),
        get_services(),
    )
    return jsonify(result), 200
