import os
import logging

import click
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from onepage.config import config_by_name
from onepage.errors import PipelineError
from onepage.extensions import db, migrate, limiter, Services

logger = logging.getLogger(__name__)


def create_app(config_name=None, model_client=None, site_worker=None, draft_store=None):
    """Application factory.

    Collaborators passed in are used as-is; anything omitted is built from
    config. Tests pass fakes here.
    """

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (fail fast in production) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            if config_name == "production":
                raise
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from onepage import models  # noqa: F401

    # --- External collaborators ---
    app.extensions["onepage"] = build_services(
        app, model_client=model_client, site_worker=site_worker, draft_store=draft_store
    )

    # --- Register blueprints ---
    from onepage.blueprints.builder import builder_bp
    from onepage.blueprints.editor import editor_bp
    from onepage.blueprints.tracking import tracking_bp
    from onepage.blueprints.webhooks import webhooks_bp
    from onepage.blueprints.maintenance import maintenance_bp

    app.register_blueprint(builder_bp)
    app.register_blueprint(editor_bp)
    app.register_blueprint(tracking_bp)
    app.register_blueprint(webhooks_bp)
    app.register_blueprint(maintenance_bp)

    # --- Error handlers ---
    register_error_handlers(app)

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # JSON API only; nothing here should ever render as a page
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def build_services(app, model_client=None, site_worker=None, draft_store=None):
    """Construct the model client, site worker and draft store from config."""
    from onepage.services.draft_store import DraftStore
    from onepage.services.model_client import GeminiClient
    from onepage.services.site_worker import SiteWorkerClient

    config = app.config

    if model_client is None and config.get("GEMINI_API_KEY"):
        model_client = GeminiClient(
            api_key=config["GEMINI_API_KEY"],
            model=config["GEMINI_MODEL"],
            max_retries=config["MODEL_MAX_RETRIES"],
            retry_backoff=config["MODEL_RETRY_BACKOFF"],
        )

    if site_worker is None and config.get("WORKER_URL") and config.get("UPLOAD_SECRET"):
        site_worker = SiteWorkerClient(
            worker_url=config["WORKER_URL"],
            upload_secret=config["UPLOAD_SECRET"],
            site_domain=config["SITE_DOMAIN"],
            timeout=config["WORKER_TIMEOUT"],
        )

    if draft_store is None:
        draft_store = DraftStore(site_worker=site_worker)

    services = Services(
        model_client=model_client, site_worker=site_worker, draft_store=draft_store
    )
    app.logger.info(f"Collaborators ready: {services!r}")
    return services


def register_error_handlers(app):
    """Every error leaves as {"error": message}."""

    @app.errorhandler(PipelineError)
    def pipeline_error(e):
        if e.status_code >= 500:
            logger.error(f"{type(e).__name__} on {request.path}: {e.message}")
        else:
            logger.info(f"{type(e).__name__} on {request.path}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def unexpected_error(e):
        logger.error(f"Unhandled error on {request.path}: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("create-schema")
    def create_schema():
        """Create any missing opf_* tables (existing tables are untouched).

        Usage:
            flask create-schema
        """
        db.create_all()
        click.echo("Schema ensured.")

    @app.cli.command("purge-drafts")
    @click.option("--max-age-hours", type=int, default=None,
                  help="Delete drafts older than this (default DRAFT_MAX_AGE_HOURS).")
    def purge_drafts(max_age_hours):
        """Delete drafts left behind by abandoned checkouts.

        Usage:
            flask purge-drafts
            flask purge-drafts --max-age-hours 48
        """
        from onepage.extensions import get_services

        if max_age_hours is None:
            max_age_hours = app.config["DRAFT_MAX_AGE_HOURS"]
        count = get_services().draft_store.purge_older_than(max_age_hours)
        click.echo(f"Purged {count} draft(s) older than {max_age_hours}h.")

    @app.cli.command("check-subscriptions")
    def check_subscriptions():
        """Re-sync subscription status from Stripe and fix site visibility.

        Run daily from a scheduler to catch missed webhooks.

        Usage:
            flask check-subscriptions
        """
        from onepage.extensions import get_services
        from onepage.services.subscription_service import reconcile_subscriptions

        api_key = app.config.get("STRIPE_SECRET_KEY")
        site_worker = get_services().site_worker
        if not api_key:
            click.echo("ERROR: STRIPE_SECRET_KEY is not set.")
            return
        if site_worker is None:
            click.echo("ERROR: WORKER_URL and UPLOAD_SECRET must be set.")
            return

        result = reconcile_subscriptions(site_worker, api_key)
        for line in result["updated"]:
            click.echo(f"  status: {line}")
        for subdomain in result["deactivated"]:
            click.echo(f"  deactivated: {subdomain}")
        for subdomain in result["reactivated"]:
            click.echo(f"  reactivated: {subdomain}")
        for line in result["errors"]:
            click.echo(f"  ERROR {line}")
        click.echo(
            f"Checked {result['checked']} site(s): "
            f"{len(result['deactivated'])} deactivated, "
            f"{len(result['reactivated'])} reactivated, "
            f"{len(result['errors'])} error(s), "
            f"{len(result['skipped'])} skipped."
        )
