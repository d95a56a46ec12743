"""Maintenance blueprint — POST /api/migrate

Creates any missing opf_* tables. Existing tables are left untouched, so
it is safe to call on every deploy.
"""

import logging

from flask import Blueprint, jsonify

from onepage.extensions import db

maintenance_bp = Blueprint("maintenance", __name__, url_prefix="/api")

logger = logging.getLogger(__name__)


@maintenance_bp.route("/migrate", methods=["POST"])
def migrate():
    db.create_all()
    logger.info("Schema ensured (create-if-absent)")
    return jsonify(message="Migration completed successfully"), 200
