"""Refinement engine — apply a short edit instruction to a published site.

Each site gets FREE_REVISION_LIMIT revisions; later requests answer 402.
All or nothing: either a complete replacement document comes back from
the model and is stored, or Site.html is left exactly as it was.
"""

import logging

from flask import current_app

from onepage.errors import RevisionLimitReached, SiteNotFound, StateConflictError
from onepage.extensions import db
from onepage.models.site import Site
from onepage.prompts.refiner import (
    build_refiner_prompt,
    parse_refiner_response,
    validate_revision_instruction,
)
from onepage.services.access_service import verify_access

logger = logging.getLogger(__name__)

REFINER_TEMPERATURE = 0.3


def refine(current_html, instruction, model_client):
    """Return ``current_html`` with ``instruction`` applied.

    The instruction is validated before the model is called. The reply must
    survive parse_refiner_response (doctype through </html>) or
    ContentContractError is raised.
    """
    trimmed = validate_revision_instruction(instruction)
    prompt = build_refiner_prompt(current_html, trimmed)
    raw = model_client.generate_text(prompt, temperature=REFINER_TEMPERATURE)
    return parse_refiner_response(raw)


def revise_site(subdomain, password, instruction, services):
    """Verify the editor, refine the site and republish it.

    Returns {success, html, publicUrl, revisionCount}.
    """
    trimmed = validate_revision_instruction(instruction)
    verify_access(subdomain, password, services.site_worker)
    subdomain = subdomain.strip().lower()

    site = db.session.get(Site, subdomain)
    if site is None:
        raise SiteNotFound()
    if not site.is_active:
        raise StateConflictError("This site is currently unpublished")
    if (site.revision_count or 0) >= current_app.config["FREE_REVISION_LIMIT"]:
        logger.info(f"Revision refused for {subdomain}: free revisions used up")
        raise RevisionLimitReached()

    new_html = refine(site.html, trimmed, services.model_client)

    site.html = new_html
    site.revision_count = (site.revision_count or 0) + 1
    try:
        db.session.flush()
        services.site_worker.update_html(subdomain, new_html)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Site revised: {subdomain} (revision {site.revision_count})")
    public_url = services.site_worker.public_url(subdomain)
    _send_revised_email(site, public_url)

    return {
        "success": True,
        "html": new_html,
        "publicUrl": public_url,
        "revisionCount": site.revision_count,
    }


def _send_revised_email(site, public_url):
    if not site.email:
        return
    try:
        from onepage.services.email_service import send_email

        app_base_url = current_app.config["APP_BASE_URL"]
        send_email(
            to=site.email,
            subject=f"Your site was updated — {site.site_name}",
            template="emails/site_revised.html",
            context={
                "site_name": site.site_name,
                "public_url": public_url,
                "edit_url": f"{app_base_url}/edit?subdomain={site.subdomain}",
            },
        )
    except Exception as e:
        logger.error(f"Failed to send revised email for {site.subdomain}: {e}")
